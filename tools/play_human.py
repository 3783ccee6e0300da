"""
Human Play Mode
================

Play tap-to-fly interactively. The frame clock drives the game's tick
scheduler, so physics runs at the configured rate regardless of FPS.

Controls:
    - Space/Click: Trigger (start or jump)
    - P: Pause / resume
    - Q: Quit the session (while paused)
    - R: Restart after game over
    - ESC: Exit

Usage:
    python -m tools.play_human [--seed SEED] [--level LEVEL] [--energy ENERGY]
"""

from __future__ import annotations

import argparse
import sys
from typing import Tuple

try:
    import pygame
    PYGAME_AVAILABLE = True
except ImportError:
    PYGAME_AVAILABLE = False

from tapfly.flight_core.config_loader import GameConfig, load_config
from tapfly.flight_core.entities import Phase, PlayerContext, SessionSummary
from tapfly.flight_core.game import FlightGame

# Longest frame fed to the scheduler; avoids a burst of ticks after a stall
MAX_FRAME_MS = 250

VARIANT_COLORS = {
    "bird": (250, 210, 60),
    "cat": (240, 150, 80),
    "dog": (190, 140, 100),
}


class FlightRenderer:
    """Flat-shaded renderer: sky, obstacle pairs, entity and HUD."""

    def __init__(self, config: GameConfig):
        self._config = config

        self._sky = (135, 195, 240)
        self._pipe = (60, 150, 70)
        self._pipe_edge = (30, 90, 40)
        self._text = (20, 20, 30)
        self._overlay = (0, 0, 0, 130)

        pygame.font.init()
        self._font_large = pygame.font.Font(None, 48)
        self._font_medium = pygame.font.Font(None, 30)

    def render(self, screen: pygame.Surface, data: dict) -> None:
        screen.fill(self._sky)
        self._draw_obstacles(screen, data)
        self._draw_entity(screen, data)
        self._draw_hud(screen, data)

        phase = data["phase"]
        if phase == "not_started":
            self._draw_panel(screen, "Tap to Fly", self._start_line(data))
        elif phase == "paused":
            self._draw_panel(screen, "Paused", "P to resume, Q to quit")
        elif phase == "over":
            self._draw_panel(
                screen,
                "Game Over",
                f"Score {data['score']}  Coins {data['coins']:.2f}  XP {data['xp']}",
                self._restart_line(data)
            )

    def _draw_obstacles(self, screen: pygame.Surface, data: dict) -> None:
        width = int(data["obstacle_width"])
        height = int(data["world_height"])
        gap = data["gap_height"]

        for obstacle in data["obstacles"]:
            x = int(obstacle["x"])
            gap_top = int(obstacle["gap_top"])
            gap_bottom = int(obstacle["gap_top"] + gap)

            top_rect = pygame.Rect(x, 0, width, gap_top)
            bottom_rect = pygame.Rect(x, gap_bottom, width, height - gap_bottom)
            for rect in (top_rect, bottom_rect):
                pygame.draw.rect(screen, self._pipe, rect)
                pygame.draw.rect(screen, self._pipe_edge, rect, 3)

    def _draw_entity(self, screen: pygame.Surface, data: dict) -> None:
        size = int(data["entity_size"])
        color = VARIANT_COLORS.get(data["entity_variant"], (220, 220, 220))
        rect = pygame.Rect(int(data["entity_x"]), int(data["entity_y"]), size, size)
        pygame.draw.rect(screen, color, rect, border_radius=size // 4)

    def _draw_hud(self, screen: pygame.Surface, data: dict) -> None:
        left = self._font_medium.render(
            f"Score {data['score']}   Coins {data['coins']:.2f}", True, self._text
        )
        screen.blit(left, (16, 14))

        right = self._font_medium.render(
            f"Energy {data['energy_remaining']}/{data['max_energy']}   Lv {data['player_level']}",
            True, self._text
        )
        screen.blit(right, (screen.get_width() - right.get_width() - 16, 14))

    def _draw_panel(self, screen: pygame.Surface, title: str, *lines: str) -> None:
        overlay = pygame.Surface(screen.get_size(), pygame.SRCALPHA)
        overlay.fill(self._overlay)
        screen.blit(overlay, (0, 0))

        cx = screen.get_width() // 2
        y = screen.get_height() // 2 - 60
        title_surface = self._font_large.render(title, True, (255, 255, 255))
        screen.blit(title_surface, (cx - title_surface.get_width() // 2, y))

        for line in lines:
            y += 44
            surface = self._font_medium.render(line, True, (255, 255, 255))
            screen.blit(surface, (cx - surface.get_width() // 2, y))

    @staticmethod
    def _start_line(data: dict) -> str:
        return "Space to start" if data["can_start"] else "No energy left"

    @staticmethod
    def _restart_line(data: dict) -> str:
        return "R to play again" if data["can_start"] else "No energy left! Visit the shop to refill."


def _window_size(config: GameConfig) -> Tuple[int, int]:
    return (int(config.world.width), int(config.world.height))


def main() -> int:
    parser = argparse.ArgumentParser(description="Play tap-to-fly")
    parser.add_argument("--seed", type=int, default=None, help="Obstacle seed")
    parser.add_argument("--level", type=int, default=1, help="Player level")
    parser.add_argument("--energy", type=int, default=5, help="Available energy")
    parser.add_argument("--variant", type=str, default="bird", help="Entity variant")
    parser.add_argument("--config", type=str, default=None, help="Path to game_config.yaml")
    args = parser.parse_args()

    if not PYGAME_AVAILABLE:
        print("pygame is required for human play: pip install pygame")
        return 1

    config = load_config(args.config)
    player = PlayerContext(
        player_level=args.level,
        available_energy=args.energy,
        max_energy=args.energy,
        entity_variant=args.variant
    )

    def report(summary: SessionSummary) -> None:
        print(f"Session over ({summary.termination_reason}): score={summary.score}, "
              f"coins={summary.coins_earned:.2f}, xp={summary.xp_earned}, "
              f"time={summary.duration_seconds:.1f}s")

    game = FlightGame(config=config, player=player, seed=args.seed, on_session_end=report)

    pygame.init()
    screen = pygame.display.set_mode(_window_size(config))
    pygame.display.set_caption("Tap to Fly")
    clock = pygame.time.Clock()
    renderer = FlightRenderer(config)

    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.MOUSEBUTTONDOWN:
                game.trigger()
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_SPACE:
                    game.trigger()
                elif event.key == pygame.K_p:
                    game.toggle_pause()
                elif event.key == pygame.K_q:
                    if game.phase is Phase.PAUSED:
                        game.quit()
                elif event.key == pygame.K_r:
                    game.restart()

        game.advance(min(clock.tick(60), MAX_FRAME_MS))

        renderer.render(screen, game.get_render_data())
        pygame.display.flip()

    game.close()
    pygame.quit()
    return 0


if __name__ == "__main__":
    sys.exit(main())
