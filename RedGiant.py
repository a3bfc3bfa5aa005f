from __future__ import annotations

"""Thin Tk based UI for Last Survivor: Red Giant."""

import asyncio
import logging
import threading
import tkinter as tk
from io import BytesIO
from pathlib import Path

from PIL import Image, ImageTk

from config import AppConfig, load_config
from errors import GameOver, TurnInProgress
from models import TurnResult
from session import SYSTEM_FAILURE_TEXT, GameSession

CONFIG_PATH = Path("redgiant.json")

logger = logging.getLogger(__name__)


def format_hud(result: TurnResult) -> str:
    """One-line status bar for the current state."""

    s = result.game_state
    return (
        f"{s.time}  {s.temperature}°C  HP {s.health}  O2 {s.oxygen}  "
        f"FOOD {s.hunger}  H2O {s.thirst}  | {s.location} | {s.game_phase.value.upper()}"
    )


class RedGiantApp:
    """Main application window.  Handles widgets and delegates logic."""

    def __init__(self, root: tk.Tk, config: AppConfig | None = None) -> None:
        self.root = root
        self.config = config or AppConfig()
        self.session = GameSession.from_config(self.config)
        self._photo: ImageTk.PhotoImage | None = None

        root.title("LAST SURVIVOR: RED GIANT")
        self.hud = tk.Label(root, anchor="w")
        self.hud.pack(fill=tk.X)
        self.picture = tk.Label(root)
        self.picture.pack()
        self.text = tk.Text(root, height=20, width=80, wrap=tk.WORD)
        self.text.pack(fill=tk.BOTH, expand=True)
        self.entry = tk.Entry(root)
        self.entry.pack(fill=tk.X)
        self.entry.bind("<Return>", self.on_command)

    # Turn handling ------------------------------------------------------
    def _run_async(self, coro_factory) -> None:
        def worker() -> None:
            try:
                result = asyncio.run(coro_factory())
            except (TurnInProgress, GameOver, ValueError) as exc:
                self.root.after(0, self._show_notice, str(exc))
                return
            except Exception:
                self.root.after(0, self._show_notice, SYSTEM_FAILURE_TEXT)
                return
            self.root.after(0, self._show_result, result)

        threading.Thread(target=worker, daemon=True).start()

    def start(self) -> None:
        self.text.insert(tk.END, "...\n")
        self._run_async(self.session.start)

    def on_command(self, event: tk.Event | None = None) -> None:
        command = self.entry.get().strip()
        self.entry.delete(0, tk.END)
        if not command:
            return
        self.text.insert(tk.END, f"\n> {command}\n")
        self._run_async(lambda: self.session.submit(command))

    # UI updates ---------------------------------------------------------
    def _show_notice(self, text: str) -> None:
        self.text.insert(tk.END, f"[{text}]\n")

    def _show_result(self, result: TurnResult) -> None:
        self.text.insert(tk.END, f"{result.story}\n")
        self.text.see(tk.END)
        self.hud.config(text=format_hud(result))
        if result.image is not None:
            img = Image.open(BytesIO(result.image.data))
            img.thumbnail((800, 450))
            self._photo = ImageTk.PhotoImage(img)
            self.picture.config(image=self._photo)
        if result.game_state.is_game_over:
            self.entry.config(state=tk.DISABLED)
            self.text.insert(tk.END, "\n*** GAME OVER ***\n")


def main() -> None:
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    root = tk.Tk()
    app = RedGiantApp(root, load_config(CONFIG_PATH))
    app.start()
    root.mainloop()


if __name__ == "__main__":
    main()
