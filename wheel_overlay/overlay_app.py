"""Wheel overlay application: controller and display wired over a local bus."""

from __future__ import annotations

import argparse
import logging
import random
import time
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional, Sequence

import pygame
import yaml

from .audio import AudioPlayer, NullAudioPlayer, PygameAudioPlayer
from .bus import LocalBus
from .controller import WheelController, configure_spin_log
from .display import WheelDisplay
from .planner import DEFAULT_EXTRA_SPINS, POINTER_ANGLE
from .render import (
    DiagnosticsData,
    DiagnosticsOverlay,
    PromptOverlay,
    WheelRenderer,
    WinnerBanner,
)
from .scheduler import FrameScheduler
from .segments import InvalidWheelError, SpinError
from .states import DEFAULT_SETTLE_DURATION, DEFAULT_WINNER_SOUND, SpinResult
from .store import InMemoryWheelStore, wheels_from_config


CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"

BACKGROUND = (0, 0, 0)


LOGGER = logging.getLogger(__name__)


class OverlayConfigError(RuntimeError):
    """Raised when the overlay configuration is invalid."""


@dataclass(frozen=True)
class OverlayConfig:
    """Normalized overlay configuration values."""

    session_id: str
    window_size: tuple[int, int]
    target_fps: int
    winner_display: float
    extra_full_spins: int
    wheel_radius: int
    audio_enabled: bool
    winner_sound: str
    spin_log: Optional[Path]
    wheels: tuple[dict, ...]
    base_dir: Path
    seed: Optional[int] = None


def load_config(config_path: Optional[Path] = None) -> OverlayConfig:
    """Load the overlay configuration from YAML and validate it."""

    raw_path = config_path or CONFIG_PATH
    path = Path(raw_path).expanduser()
    if not path.is_absolute():
        path = path.resolve()
    if not path.exists():
        raise OverlayConfigError(f"Config file not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise OverlayConfigError("Configuration root must be a mapping.")
    return parse_config(data, path.parent)


def parse_config(data: dict, base_dir: Path) -> OverlayConfig:
    """Validate an already-parsed configuration mapping."""

    required_keys = {"session_id", "wheels"}
    missing = required_keys - data.keys()
    if missing:
        raise OverlayConfigError(f"Missing configuration keys: {', '.join(sorted(missing))}")

    session_id = str(data["session_id"]).strip()
    if not session_id:
        raise OverlayConfigError("session_id must be a non-empty string.")

    window_cfg = data.get("window", {}) or {}
    if not isinstance(window_cfg, dict):
        raise OverlayConfigError("window must be a mapping with 'width' and 'height'.")
    try:
        window_size = (int(window_cfg.get("width", 800)), int(window_cfg.get("height", 800)))
        target_fps = int(data.get("target_fps", 60))
    except (TypeError, ValueError) as exc:
        raise OverlayConfigError("window size and target_fps must be integers.") from exc
    if window_size[0] <= 0 or window_size[1] <= 0:
        raise OverlayConfigError("window width and height must be positive.")

    timers_cfg = data.get("timers", {}) or {}
    if not isinstance(timers_cfg, dict):
        raise OverlayConfigError("timers must be a mapping.")
    try:
        winner_display = float(timers_cfg.get("winner_display", DEFAULT_SETTLE_DURATION))
    except (TypeError, ValueError) as exc:
        raise OverlayConfigError("Timer values must be numeric.") from exc
    if winner_display <= 0:
        raise OverlayConfigError("Timer 'winner_display' must be greater than zero.")

    spin_cfg = data.get("spin", {}) or {}
    if not isinstance(spin_cfg, dict):
        raise OverlayConfigError("spin must be a mapping.")
    try:
        extra_full_spins = int(spin_cfg.get("extra_full_spins", DEFAULT_EXTRA_SPINS))
        wheel_radius = int(spin_cfg.get("radius", min(window_size) // 2 - 60))
        seed_raw = spin_cfg.get("seed")
        seed = None if seed_raw is None else int(seed_raw)
    except (TypeError, ValueError) as exc:
        raise OverlayConfigError("spin.extra_full_spins, spin.radius and spin.seed must be integers.") from exc
    if extra_full_spins < 0:
        raise OverlayConfigError("spin.extra_full_spins must be zero or greater.")
    if wheel_radius <= 0:
        raise OverlayConfigError("spin.radius must be positive.")

    audio_cfg = data.get("audio", {}) or {}
    if not isinstance(audio_cfg, dict):
        raise OverlayConfigError("audio must be a mapping.")
    winner_sound = str(audio_cfg.get("winner_sound", DEFAULT_WINNER_SOUND))

    spin_log_raw = data.get("spin_log")
    spin_log: Optional[Path] = None
    if spin_log_raw:
        raw_log = Path(str(spin_log_raw)).expanduser()
        spin_log = raw_log if raw_log.is_absolute() else (base_dir / raw_log).resolve()

    wheels = data["wheels"]
    if not isinstance(wheels, list) or not wheels:
        raise OverlayConfigError("wheels must be a non-empty list.")
    for entry in wheels:
        if not isinstance(entry, dict):
            raise OverlayConfigError("Each wheel entry must be a mapping.")
        if not isinstance(entry.get("segments"), list):
            raise OverlayConfigError(f"Wheel '{entry.get('name', '?')}' must list its segments.")

    return OverlayConfig(
        session_id=session_id,
        window_size=window_size,
        target_fps=max(1, target_fps),
        winner_display=winner_display,
        extra_full_spins=extra_full_spins,
        wheel_radius=wheel_radius,
        audio_enabled=bool(audio_cfg.get("enabled", True)),
        winner_sound=winner_sound,
        spin_log=spin_log,
        wheels=tuple(dict(entry) for entry in wheels),
        base_dir=base_dir,
        seed=seed,
    )


def build_session(
    config: OverlayConfig,
    bus: LocalBus,
    scheduler: FrameScheduler,
    audio: Optional[AudioPlayer] = None,
) -> tuple[WheelController, WheelDisplay]:
    """Create the store, controller and one display for ``config``."""

    store = InMemoryWheelStore()
    try:
        wheels_from_config(store, config.session_id, list(config.wheels))
    except InvalidWheelError as exc:
        raise OverlayConfigError(f"Invalid wheel configuration: {exc}") from exc

    rng = random.Random(config.seed) if config.seed is not None else None
    controller = WheelController(store, bus, config.session_id, rng=rng)
    display = WheelDisplay(
        config.session_id,
        bus,
        scheduler,
        audio=audio or NullAudioPlayer(),
        settle_duration=config.winner_display,
        extra_full_spins=config.extra_full_spins,
        winner_sound=config.winner_sound,
    )
    wheels = controller.broadcast_wheels()
    LOGGER.info("Session %s ready with %d wheel(s)", config.session_id, len(wheels))
    return controller, display


def _handle_events(
    events: Sequence[pygame.event.Event],
    controller: WheelController,
    toggles: dict[str, bool],
) -> bool:
    running = True
    for event in events:
        if event.type == pygame.QUIT:
            running = False
            continue
        if event.type != pygame.KEYDOWN:
            continue

        if event.key in (pygame.K_ESCAPE, pygame.K_q):
            running = False
        elif event.key == pygame.K_SPACE:
            try:
                spin = controller.spin()
            except SpinError as exc:
                print(f"[wheel] Cannot spin: {exc}")
            else:
                print(f"[wheel] Spin {spin.timestamp}: {spin.winning_label}")
        elif event.key == pygame.K_TAB:
            step = -1 if event.mod & pygame.KMOD_SHIFT else 1
            wheel = controller.cycle_active(step)
            if wheel is not None:
                print(f"[wheel] Active wheel: {wheel.name}")
        elif event.key == pygame.K_d:
            toggles["diagnostics"] = not toggles["diagnostics"]
    return running


def _diagnostics(display: WheelDisplay, clock: pygame.time.Clock) -> DiagnosticsData:
    animator = display.animator
    layout = display.layout()
    under_pointer: Optional[str] = None
    if layout is not None and display.active_wheel is not None:
        index = layout.segment_at(POINTER_ANGLE, display.rotation)
        if index is not None:
            under_pointer = display.active_wheel.segments[index].label
    return DiagnosticsData(
        fps=clock.get_fps(),
        state=display.state,
        wheel_name=display.active_wheel.name if display.active_wheel is not None else None,
        rotation=display.rotation,
        progress=animator.progress() if animator is not None else 0.0,
        segment_under_pointer=under_pointer,
        last_event_id=animator.last_processed_event_id if animator is not None else None,
    )


def run_overlay(config: OverlayConfig) -> None:
    """Run the overlay window until the operator quits."""

    pygame.init()
    pygame.display.set_caption(f"Wheel Overlay - {config.session_id}")
    screen = pygame.display.set_mode(config.window_size)
    clock = pygame.time.Clock()

    if config.spin_log is not None:
        configure_spin_log(config.spin_log)

    audio: AudioPlayer = (
        PygameAudioPlayer(base_dir=config.base_dir) if config.audio_enabled else NullAudioPlayer()
    )
    bus = LocalBus()
    scheduler = FrameScheduler(clock=time.monotonic)
    controller, display = build_session(config, bus, scheduler, audio)

    def _announce(result: SpinResult) -> None:
        print(f"[wheel] Winner: {result.winning_label}")

    display.add_spin_listener(_announce)

    renderer = WheelRenderer(radius=config.wheel_radius)
    banner = WinnerBanner()
    prompt = PromptOverlay()
    diagnostics_overlay = DiagnosticsOverlay()
    toggles = {"diagnostics": False}
    center = screen.get_rect().center

    try:
        running = True
        while running:
            running = _handle_events(pygame.event.get(), controller, toggles)
            scheduler.run_frame()

            screen.fill(BACKGROUND)
            if display.active_wheel is None:
                prompt.draw(screen, "No active wheel", center, "Press TAB to activate one")
            else:
                renderer.draw(screen, display.active_wheel, display.rotation, center)
                banner.draw(screen, display.winner_label, center)
            if toggles["diagnostics"]:
                diagnostics_overlay.draw(screen, _diagnostics(display, clock))

            pygame.display.flip()
            clock.tick(config.target_fps)
    finally:
        display.close()
        pygame.quit()


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run the wheel overlay display.")
    parser.add_argument(
        "--config",
        type=Path,
        default=CONFIG_PATH,
        help=f"Path to configuration file (default: {CONFIG_PATH}).",
    )
    parser.add_argument("--session", type=str, default=None, help="Override the session id.")
    parser.add_argument("--mute", action="store_true", help="Disable winner sounds.")
    parser.add_argument("--seed", type=int, default=None, help="Seed winner selection.")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config = load_config(args.config)
    overrides: dict[str, Any] = {}
    if args.session:
        overrides["session_id"] = args.session
    if args.mute:
        overrides["audio_enabled"] = False
    if args.seed is not None:
        overrides["seed"] = args.seed
    if overrides:
        config = replace(config, **overrides)
    run_overlay(config)


if __name__ == "__main__":
    main()
