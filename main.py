from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

try:
    import pygame  # type: ignore
except Exception:
    pygame = None

from config import SAVE_DIR, AreaKind, ResourceKind, ToolKind
from game import GameSession, SaveManager, SessionPhase, StateView
from game.commands import RESOURCES
from game.progression import PROGRESSION

WINDOW_W = 1100
WINDOW_H = 720


def resource_lines(view: StateView) -> List[str]:
    return [
        f"{RESOURCES[kind.value]['display_name']}: {view.resources.get(kind, 0)}"
        for kind in ResourceKind
    ]


def tool_lines(view: StateView) -> List[str]:
    lines = []
    for kind in ToolKind:
        spec = PROGRESSION.tool(kind)
        if kind in view.owned_tools:
            lines.append(f"[x] {spec.display_name} (x{spec.yield_multiplier:g})")
        else:
            cost = ", ".join(
                f"{amount} {RESOURCES[res.value]['display_name']}" for res, amount in spec.craft_cost.items()
            )
            lines.append(f"[ ] {spec.display_name}: {cost}")
    return lines


def map_lines(view: StateView) -> List[str]:
    lines = []
    for kind in AreaKind:
        name = PROGRESSION.area(kind).display_name
        if kind == view.active_area:
            lines.append(f"@ {name} (here)")
        elif kind in view.unlocked_areas:
            lines.append(f"+ {name}")
        else:
            lines.append(f"- {name} (locked)")
    return lines


def status_line(view: StateView) -> str:
    if view.phase != SessionPhase.PLAYING:
        return f"[{view.phase.value}]"
    held = ", ".join(line for line in resource_lines(view) if not line.endswith(": 0"))
    area = PROGRESSION.area(view.active_area).display_name
    return f"[slot {view.slot_id} | {area}] {held or 'no resources yet'}"


def run_headless(
    session: GameSession,
    commands: Iterable[str],
    clock: Callable[[], float] = time.monotonic,
    out=None,
) -> None:
    """Drive the session from plain text lines (stdin or a script)."""
    out = out or sys.stdout
    print(session.handle("slots").message, file=out)
    last = clock()
    for line in commands:
        if not line.strip():
            continue
        now = clock()
        session.tick(now - last)
        last = now
        outcome = session.handle(line)
        if outcome.message:
            print(outcome.message if outcome.ok else f"! {outcome.message}", file=out)
        if not session.running:
            break
        print(status_line(session.view()), file=out)

    if session.phase == SessionPhase.PLAYING:
        outcome = session.handle("quit")
        print(outcome.message if outcome.ok else f"! {outcome.message}", file=out)


class GameUI:
    def __init__(self, session: GameSession):
        if pygame is None:
            raise RuntimeError("pygame is required for windowed mode; relaunch with --headless")
        try:
            pygame.display.init()
        except pygame.error as exc:
            raise RuntimeError(f"Display subsystem is unavailable ({exc}). Relaunch with --headless.") from exc
        if not pygame.display.get_init():
            raise RuntimeError("Display subsystem is unavailable. Relaunch with --headless.")
        pygame.init()
        self.session = session
        self.screen = pygame.display.set_mode((WINDOW_W, WINDOW_H))
        pygame.display.set_caption("Pyrobase")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("consolas,dejavusansmono,monospace", 20)
        self.small = pygame.font.SysFont("consolas,dejavusansmono,monospace", 16)
        self.command_input = ""
        self.output = session.handle("slots").message
        self.output_ok = True

        self.palette = {
            "bg": (18, 12, 10),
            "border": (120, 72, 40),
            "title": (255, 170, 90),
            "text": (236, 226, 214),
            "muted": (160, 140, 126),
            "error": (235, 80, 70),
        }

    def handle_input(self) -> Optional[str]:
        submitted = None
        for ev in pygame.event.get():
            if ev.type == pygame.QUIT:
                submitted = "quit"
            elif ev.type == pygame.TEXTINPUT:
                self.command_input += ev.text
            elif ev.type == pygame.KEYDOWN:
                if ev.key == pygame.K_BACKSPACE:
                    self.command_input = self.command_input[:-1]
                elif ev.key in (pygame.K_RETURN, pygame.K_KP_ENTER):
                    submitted = self.command_input.strip()
                    self.command_input = ""
                elif ev.key == pygame.K_ESCAPE:
                    submitted = "quit"
        return submitted

    def _wrap(self, text: str, width: int) -> List[str]:
        lines: List[str] = []
        line = ""
        for word in text.split():
            candidate = f"{line} {word}".strip()
            if self.small.size(candidate)[0] <= width:
                line = candidate
                continue
            if line:
                lines.append(line)
            line = word
        if line:
            lines.append(line)
        return lines

    def _panel(self, rect: "pygame.Rect", title: str, lines: List[str], color: Optional[Tuple[int, int, int]] = None) -> None:
        pygame.draw.rect(self.screen, self.palette["border"], rect, width=1, border_radius=4)
        self.screen.blit(self.font.render(title, True, self.palette["title"]), (rect.x + 8, rect.y + 4))
        y = rect.y + 30
        for raw in lines:
            for line in self._wrap(raw, rect.w - 16) or [""]:
                if y + 18 > rect.bottom:
                    return
                self.screen.blit(self.small.render(line, True, color or self.palette["text"]), (rect.x + 8, y))
                y += 19

    def _layout(self) -> dict:
        w, h = self.screen.get_size()
        top_h = int(h * 0.6)
        mid_h = int(h * 0.2)
        left_w = int(w * 0.3)
        right_w = w - left_w
        upper_h = int(top_h * 0.7)
        half = right_w // 2
        return {
            "resources": pygame.Rect(0, 0, left_w, top_h),
            "events": pygame.Rect(left_w, 0, half, upper_h),
            "map": pygame.Rect(left_w + half, 0, right_w - half, upper_h),
            "tools": pygame.Rect(left_w, upper_h, right_w, top_h - upper_h),
            "commands": pygame.Rect(0, top_h, w, mid_h),
            "output": pygame.Rect(0, top_h + mid_h, w, h - top_h - mid_h),
        }

    def draw(self, view: StateView) -> None:
        self.screen.fill(self.palette["bg"])
        rects = self._layout()
        playing = view.phase == SessionPhase.PLAYING
        self._panel(rects["resources"], "Resources", resource_lines(view) if playing else [])
        self._panel(rects["events"], "Events", list(reversed(view.events)), self.palette["muted"])
        self._panel(rects["map"], "Map", map_lines(view) if playing else [])
        self._panel(rects["tools"], "Tools", tool_lines(view) if playing else [])
        self._panel(rects["commands"], "Commands", [f"> {self.command_input}_", status_line(view)])
        self._panel(
            rects["output"],
            "Output",
            [self.output],
            None if self.output_ok else self.palette["error"],
        )
        pygame.display.flip()

    def run(self) -> None:
        while self.session.running:
            dt = self.clock.tick(30) / 1000.0
            command = self.handle_input()
            self.session.tick(dt)
            if command:
                outcome = self.session.handle(command)
                self.output = outcome.message
                self.output_ok = outcome.ok
            self.draw(self.session.view())
        pygame.quit()


def main() -> None:
    parser = argparse.ArgumentParser(description="Pyrobase resource-management game")
    parser.add_argument("--headless", action="store_true", help="play in the terminal without a window")
    parser.add_argument("--slot", type=int, help="load this save slot on startup")
    parser.add_argument("--save-dir", type=Path, default=SAVE_DIR, help="directory holding save slots")
    parser.add_argument("--commands", help="semicolon-separated commands to run headless instead of stdin")
    args = parser.parse_args()

    session = GameSession(SaveManager(args.save_dir))
    if args.slot is not None:
        outcome = session.handle(f"load-slot {args.slot}")
        if not outcome.ok:
            print(f"Slot error: {outcome.message}", file=sys.stderr)

    if args.headless:
        commands = args.commands.split(";") if args.commands else sys.stdin
        run_headless(session, commands)
        return

    try:
        ui = GameUI(session)
    except RuntimeError as exc:
        print(f"Startup error: {exc}", file=sys.stderr)
        raise SystemExit(1)
    ui.run()


if __name__ == "__main__":
    main()
