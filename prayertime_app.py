#!/usr/bin/env python3
"""
Prayer Time Desktop Widget
Always-on-top window showing:
  - Current location and date (Gregorian + Hijri)
  - Adhan and Iqama times for the five daily prayers
  - Live countdown to the next Adhan or Iqama
  - Per-prayer countdown while hovering a time
  - Desktop notification when each Adhan / Iqama arrives
"""

import logging
import os
import tkinter as tk
from tkinter import messagebox

import requests

from src.events import EventKind, Prayer
from src.formatting import localize_digits
from src.location import (
    Location,
    clear_manual_location,
    save_manual_location,
    search_locations,
)
from src.prayer_api import CALCULATION_METHODS
from src.session import STATUS_LOADING, STATUS_READY, PrayerSession
from src.settings import LANGUAGES, load_settings, resolve_log_level, save_settings

logger = logging.getLogger("prayertime")

# ──────────────────────────────────────────────────────────────────────────────
# Theme constants
# ──────────────────────────────────────────────────────────────────────────────
BG_BASE = "#1e1e2e"
BG_MANTLE = "#181825"
BG_SURFACE = "#313244"
TEXT_MAIN = "#cdd6f4"
TEXT_DIM = "#6c7086"
ACCENT_MAUVE = "#cba6f7"
ACCENT_PINK = "#f5c2e7"
ACCENT_GREEN = "#a6e3a1"
ACCENT_YELLOW = "#f9e2af"
ACCENT_RED = "#f38ba8"

FONT_SM = ("Courier", 9)
FONT_MD = ("Courier", 11, "bold")
FONT_TITLE = ("Courier", 20, "bold")
FONT_COUNTDOWN = ("Courier", 26, "bold")

WINDOW_W = 460
WINDOW_H = 600

BANNER_MS = 15000


def _hhmm(instant) -> str:
    return instant.strftime("%H:%M") if instant else "--:--"


# ──────────────────────────────────────────────────────────────────────────────
# Main App
# ──────────────────────────────────────────────────────────────────────────────
class PrayerTimeApp:
    def __init__(self, root: tk.Tk, settings: dict):
        self.root = root
        self.settings = settings
        self._hover = None  # (Prayer, EventKind) under the mouse

        self.session = PrayerSession(root, self._render, settings=settings)
        self.session.on_notification = self._on_notification

        self._setup_window()
        self._build_ui()
        self.session.start()

    def _setup_window(self):
        self.root.title("Prayer Time")
        self.root.configure(bg=BG_BASE)
        self.root.geometry(f"{WINDOW_W}x{WINDOW_H}")
        self.root.attributes("-topmost", True)
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

    def _on_close(self):
        self.session.stop()
        self.root.destroy()

    # ──────────────────────────────────────────────────────────────────────
    # Layout
    # ──────────────────────────────────────────────────────────────────────
    def _build_ui(self):
        tk.Label(
            self.root, text="Salawat", font=FONT_TITLE, fg=ACCENT_MAUVE, bg=BG_BASE,
        ).pack(pady=(12, 2))

        self.lbl_location = tk.Label(
            self.root, text="📍 Detecting location…", font=FONT_SM,
            fg=TEXT_DIM, bg=BG_BASE, wraplength=WINDOW_W - 40,
        )
        self.lbl_location.pack()

        self.lbl_date = tk.Label(self.root, text="", font=FONT_SM, fg=TEXT_MAIN, bg=BG_BASE)
        self.lbl_date.pack(pady=(2, 0))

        self.lbl_clock = tk.Label(self.root, text="", font=FONT_MD, fg=TEXT_MAIN, bg=BG_BASE)
        self.lbl_clock.pack(pady=(2, 8))

        card = tk.Frame(self.root, bg=BG_MANTLE, highlightbackground=BG_SURFACE, highlightthickness=1)
        card.pack(fill=tk.X, padx=16, pady=4)
        self.lbl_next = tk.Label(card, text="Loading prayer times…", font=FONT_MD, fg=ACCENT_PINK, bg=BG_MANTLE)
        self.lbl_next.pack(pady=(8, 0))
        self.lbl_countdown = tk.Label(card, text="--:--:--", font=FONT_COUNTDOWN, fg=ACCENT_YELLOW, bg=BG_MANTLE)
        self.lbl_countdown.pack(pady=(0, 8))

        self._build_prayer_rows()

        self.lbl_hover = tk.Label(self.root, text="", font=FONT_SM, fg=ACCENT_GREEN, bg=BG_BASE)
        self.lbl_hover.pack(pady=(4, 0))

        self.notif_frame = tk.Frame(self.root, bg=BG_SURFACE)
        self.lbl_notif = tk.Label(
            self.notif_frame, text="", font=FONT_SM, fg=ACCENT_YELLOW, bg=BG_SURFACE,
            wraplength=WINDOW_W - 40, justify=tk.LEFT,
        )
        self.lbl_notif.pack(padx=8, pady=6)

        nav = tk.Frame(self.root, bg=BG_BASE)
        nav.pack(side=tk.BOTTOM, pady=10)
        for text, command in (
            ("◀", lambda: self.session.shift_date(-1)),
            ("Today", lambda: self.session.set_date(None)),
            ("▶", lambda: self.session.shift_date(1)),
            ("Location…", self._show_location_dialog),
            ("Settings…", self._show_settings_dialog),
        ):
            tk.Button(
                nav, text=text, font=FONT_SM, fg=TEXT_MAIN, bg=BG_SURFACE,
                activebackground=BG_MANTLE, bd=0, padx=8, cursor="hand2", command=command,
            ).pack(side=tk.LEFT, padx=3)

    def _build_prayer_rows(self):
        table = tk.Frame(self.root, bg=BG_BASE)
        table.pack(fill=tk.X, padx=16, pady=8)
        for col, heading in enumerate(("Prayer", "Adhan", "Iqama")):
            tk.Label(
                table, text=heading, font=FONT_SM, fg=TEXT_DIM, bg=BG_BASE, anchor="w",
            ).grid(row=0, column=col, sticky="ew", padx=6)
            table.columnconfigure(col, weight=1)

        self.prayer_rows = {}
        for row, prayer in enumerate(Prayer, start=1):
            widgets = {
                "name": tk.Label(table, text=prayer.display_name, font=FONT_MD, fg=TEXT_MAIN, bg=BG_BASE, anchor="w"),
                EventKind.ADHAN: tk.Label(table, text="--:--", font=FONT_MD, fg=TEXT_MAIN, bg=BG_BASE, anchor="w"),
                EventKind.IQAMA: tk.Label(table, text="--:--", font=FONT_MD, fg=TEXT_DIM, bg=BG_BASE, anchor="w"),
            }
            widgets["name"].grid(row=row, column=0, sticky="ew", padx=6, pady=3)
            for col, kind in ((1, EventKind.ADHAN), (2, EventKind.IQAMA)):
                lbl = widgets[kind]
                lbl.grid(row=row, column=col, sticky="ew", padx=6, pady=3)
                lbl.bind("<Enter>", lambda e, p=prayer, k=kind: self._on_hover(p, k))
                lbl.bind("<Leave>", lambda e: self._on_hover(None, None))
            self.prayer_rows[prayer] = widgets

    # ──────────────────────────────────────────────────────────────────────
    # Rendering
    # ──────────────────────────────────────────────────────────────────────
    def _render(self, state):
        language = self.settings["language"]
        if state.location_name:
            self.lbl_location.config(text=f"📍 {state.location_name}", fg=ACCENT_GREEN)
        self.lbl_date.config(text=state.date_line)
        self.lbl_clock.config(text=state.clock)

        if state.status == STATUS_READY:
            kind = "Iqama" if state.next_kind is EventKind.IQAMA else "Adhan"
            self.lbl_next.config(text=f"{state.next_prayer.display_name} {kind} in", fg=ACCENT_PINK)
        elif state.status == STATUS_LOADING:
            self.lbl_next.config(text="Loading prayer times…", fg=TEXT_DIM)
        else:
            self.lbl_next.config(text=f"⚠ Prayer times unavailable: {state.error[:60]}", fg=ACCENT_RED)
        self.lbl_countdown.config(text=state.countdown)

        for prayer, widgets in self.prayer_rows.items():
            is_next = prayer is state.next_prayer
            for kind, times in ((EventKind.ADHAN, state.adhan_times), (EventKind.IQAMA, state.iqama_times)):
                fg = ACCENT_YELLOW if is_next and kind is state.next_kind else (
                    TEXT_MAIN if kind is EventKind.ADHAN else TEXT_DIM)
                widgets[kind].config(text=localize_digits(_hhmm(times.get(prayer)), language), fg=fg)
            widgets["name"].config(fg=ACCENT_PINK if is_next else TEXT_MAIN)

        self._update_hover()

    def _on_hover(self, prayer, kind):
        self._hover = (prayer, kind) if prayer else None
        self._update_hover()

    def _update_hover(self):
        if self._hover is None:
            self.lbl_hover.config(text="")
            return
        prayer, kind = self._hover
        label = "Iqama" if kind is EventKind.IQAMA else "Adhan"
        remaining = self.session.countdown_for(prayer, kind)
        self.lbl_hover.config(text=f"{prayer.display_name} {label} in {remaining}")

    # ──────────────────────────────────────────────────────────────────────
    # Notifications
    # ──────────────────────────────────────────────────────────────────────
    def _on_notification(self, title: str, message: str):
        self.lbl_notif.config(text=f"{title}\n{message}")
        self.notif_frame.pack(fill=tk.X, padx=16, pady=4)
        self.root.bell()
        self.root.after(BANNER_MS, self.notif_frame.pack_forget)

    # ──────────────────────────────────────────────────────────────────────
    # Location dialog
    # ──────────────────────────────────────────────────────────────────────
    def _show_location_dialog(self):
        """Search for a place, enter coordinates, or go back to IP detection."""
        dlg = tk.Toplevel(self.root)
        dlg.title("Set Location")
        dlg.configure(bg=BG_BASE)
        dlg.geometry("400x420")
        dlg.attributes("-topmost", True)
        dlg.transient(self.root)
        dlg.grab_set()

        tk.Label(dlg, text="📍 Search for a city", font=FONT_MD, fg=ACCENT_MAUVE, bg=BG_BASE).pack(pady=(10, 4))
        search_row = tk.Frame(dlg, bg=BG_BASE)
        search_row.pack(fill=tk.X, padx=16)
        ent_query = tk.Entry(search_row, font=FONT_SM, fg=TEXT_MAIN, bg=BG_SURFACE, insertbackground=TEXT_MAIN, relief=tk.FLAT)
        ent_query.pack(side=tk.LEFT, fill=tk.X, expand=True)
        results_box = tk.Listbox(dlg, font=FONT_SM, fg=TEXT_MAIN, bg=BG_MANTLE, height=5, relief=tk.FLAT)
        results_box.pack(fill=tk.X, padx=16, pady=6)
        results = []

        def _search():
            try:
                found = search_locations(ent_query.get())
            except requests.RequestException as exc:
                logger.warning("Location search failed: %s", exc)
                messagebox.showerror("Search failed", str(exc), parent=dlg)
                return
            results[:] = found
            results_box.delete(0, tk.END)
            for loc in found:
                results_box.insert(tk.END, loc.name)

        def _pick(_event=None):
            selection = results_box.curselection()
            if not selection:
                return
            _apply_location(results[selection[0]])

        tk.Button(search_row, text="Search", font=FONT_SM, bg=BG_SURFACE, fg=TEXT_MAIN, bd=0, command=_search).pack(side=tk.LEFT, padx=(6, 0))
        ent_query.bind("<Return>", lambda e: _search())
        results_box.bind("<Double-Button-1>", _pick)

        tk.Label(dlg, text="…or enter coordinates", font=FONT_MD, fg=ACCENT_MAUVE, bg=BG_BASE).pack(pady=(8, 4))
        fields = tk.Frame(dlg, bg=BG_BASE)
        fields.pack(fill=tk.X, padx=16)
        entries = {}
        current = self.session.location
        for i, (label, key) in enumerate((
            ("Name:", "name"), ("Latitude:", "latitude"), ("Longitude:", "longitude"), ("Timezone:", "timezone_id"),
        )):
            tk.Label(fields, text=label, font=FONT_SM, fg=TEXT_MAIN, bg=BG_BASE, anchor="w", width=10).grid(row=i, column=0, sticky="w", pady=2)
            ent = tk.Entry(fields, font=FONT_SM, fg=TEXT_MAIN, bg=BG_SURFACE, insertbackground=TEXT_MAIN, relief=tk.FLAT)
            ent.grid(row=i, column=1, sticky="ew", pady=2)
            value = getattr(current, key, None) if current else None
            if value is not None:
                ent.insert(0, str(value))
            entries[key] = ent
        fields.columnconfigure(1, weight=1)

        def _apply_location(loc: Location):
            save_manual_location(loc)
            dlg.destroy()
            self.session.set_location(loc)

        def _apply_coords():
            try:
                loc = Location(
                    latitude=float(entries["latitude"].get().strip()),
                    longitude=float(entries["longitude"].get().strip()),
                    timezone_id=entries["timezone_id"].get().strip() or None,
                    name=entries["name"].get().strip(),
                )
            except ValueError:
                messagebox.showerror("Invalid input", "Latitude and Longitude must be numbers.", parent=dlg)
                return
            _apply_location(loc)

        def _refresh_ip():
            clear_manual_location()
            dlg.destroy()
            self.session.refresh_location()

        buttons = tk.Frame(dlg, bg=BG_BASE)
        buttons.pack(pady=10)
        for text, color, command in (
            ("Use selected", ACCENT_GREEN, _pick),
            ("Save coordinates", ACCENT_GREEN, _apply_coords),
            ("Refresh from IP", ACCENT_YELLOW, _refresh_ip),
            ("Cancel", BG_SURFACE, dlg.destroy),
        ):
            tk.Button(buttons, text=text, font=FONT_SM, fg=BG_BASE, bg=color, bd=0, cursor="hand2", command=command).pack(side=tk.LEFT, padx=3)

    # ──────────────────────────────────────────────────────────────────────
    # Settings dialog
    # ──────────────────────────────────────────────────────────────────────
    def _show_settings_dialog(self):
        dlg = tk.Toplevel(self.root)
        dlg.title("Settings")
        dlg.configure(bg=BG_BASE)
        dlg.attributes("-topmost", True)
        dlg.transient(self.root)
        dlg.grab_set()

        method_names = {name: method_id for method_id, name in CALCULATION_METHODS.items()}
        method_var = tk.StringVar(value=CALCULATION_METHODS.get(self.settings["method"], ""))
        language_var = tk.StringVar(value=self.settings["language"])
        notify_var = tk.BooleanVar(value=self.settings["notifications"])

        tk.Label(dlg, text="Calculation method", font=FONT_SM, fg=TEXT_MAIN, bg=BG_BASE).pack(anchor="w", padx=16, pady=(12, 0))
        tk.OptionMenu(dlg, method_var, *method_names).pack(fill=tk.X, padx=16)
        tk.Label(dlg, text="Digits", font=FONT_SM, fg=TEXT_MAIN, bg=BG_BASE).pack(anchor="w", padx=16, pady=(8, 0))
        tk.OptionMenu(dlg, language_var, *LANGUAGES).pack(fill=tk.X, padx=16)
        tk.Checkbutton(
            dlg, text="Desktop notifications", variable=notify_var, font=FONT_SM,
            fg=TEXT_MAIN, bg=BG_BASE, selectcolor=BG_SURFACE, activebackground=BG_BASE,
        ).pack(anchor="w", padx=16, pady=8)

        def _apply():
            method = method_names.get(method_var.get(), self.settings["method"])
            method_changed = method != self.settings["method"]
            self.settings.update(
                method=method, language=language_var.get(), notifications=notify_var.get(),
            )
            save_settings(self.settings)
            self.session.settings["notifications"] = self.settings["notifications"]
            self.session.set_language(self.settings["language"])
            if method_changed:
                self.session.set_method(method)
            dlg.destroy()

        tk.Button(dlg, text="Save", font=FONT_SM, fg=BG_BASE, bg=ACCENT_GREEN, bd=0, command=_apply).pack(pady=(0, 12))


# ──────────────────────────────────────────────────────────────────────────────
# Entry point
# ──────────────────────────────────────────────────────────────────────────────
def main():
    settings = load_settings()
    logging.basicConfig(
        level=resolve_log_level(settings, os.environ.get("PRAYERTIME_LOG_LEVEL")),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    root = tk.Tk()
    PrayerTimeApp(root, settings)
    root.mainloop()


if __name__ == "__main__":
    main()
