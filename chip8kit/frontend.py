"""Interactive pygame front end."""

import time
from typing import Optional

import numpy as np
import pygame

from chip8kit.machine import Machine
from chip8kit.rendering import chip8_display_to_rgb, create_color_scheme

# QWERTY block 1234/QWER/ASDF/ZXCV onto the COSMAC VIP hex keypad
KEY_MAP = {
    pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3, pygame.K_4: 0xC,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0xD,
    pygame.K_a: 0x7, pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_f: 0xE,
    pygame.K_z: 0xA, pygame.K_x: 0x0, pygame.K_c: 0xB, pygame.K_v: 0xF,
}

FPS = 60


def draw_overlay_text(surface, text_lines, position, font, bg_color=(0, 0, 0), text_color=(255, 255, 255), alpha=120):
    """Draw text with semi-transparent background overlay"""
    if not text_lines:
        return

    line_height = font.get_height()
    max_width = max(font.size(line)[0] for line in text_lines)
    overlay = pygame.Surface((max_width + 16, len(text_lines) * line_height + 8))
    overlay.set_alpha(alpha)
    overlay.fill(bg_color)
    surface.blit(overlay, position)

    x, y = position
    for i, line in enumerate(text_lines):
        text_surface = font.render(line, True, text_color)
        surface.blit(text_surface, (x + 8, y + 4 + i * line_height))


def make_tone(frequency: float, volume: float) -> Optional[pygame.mixer.Sound]:
    """One period-aligned second of square wave, looped while the sound timer runs."""
    mixer = pygame.mixer.get_init()
    if mixer is None:
        return None
    sample_rate, _, channels = mixer
    t = np.arange(sample_rate) / sample_rate
    wave = np.where(np.sin(2 * np.pi * frequency * t) >= 0, 1.0, -1.0)
    samples = (wave * volume * 32767).astype(np.int16)
    if channels > 1:
        samples = np.repeat(samples[:, None], channels, axis=1)
    return pygame.sndarray.make_sound(np.ascontiguousarray(samples))


class Frontend:
    """Window, keyboard and speaker for one Machine.

    Hotkeys: Esc quits, P pauses, F5 resets, Tab toggles the debug overlay.
    """

    def __init__(self, machine: Machine):
        self.machine = machine
        self.logger = machine.logger
        display_cfg = machine.config.display
        self.scale = display_cfg.scale
        self.on_color, self.off_color = create_color_scheme(display_cfg.color_scheme)
        self.audio_cfg = machine.config.audio
        self.paused = False
        self.show_debug = False
        self.tone = None
        self.tone_playing = False

    def _init_audio(self):
        if not self.audio_cfg.enabled:
            return
        try:
            pygame.mixer.init(frequency=44100, size=-16, channels=1)
        except pygame.error as e:
            self.logger.warning(f"Audio disabled: {e}")
            return
        self.tone = make_tone(self.audio_cfg.frequency, self.audio_cfg.volume)

    def _update_audio(self):
        if self.tone is None:
            return
        active = self.machine.is_sound_active() and not self.paused
        if active and not self.tone_playing:
            self.tone.play(loops=-1)
        elif not active and self.tone_playing:
            self.tone.stop()
        self.tone_playing = active

    def _handle_events(self) -> bool:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return False
            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    return False
                elif event.key == pygame.K_p:
                    self.paused = not self.paused
                    self.logger.info("Paused" if self.paused else "Resumed")
                elif event.key == pygame.K_F5:
                    self.machine.reset()
                elif event.key == pygame.K_TAB:
                    self.show_debug = not self.show_debug
                elif event.key in KEY_MAP:
                    self.machine.set_key(KEY_MAP[event.key], True)
            elif event.type == pygame.KEYUP and event.key in KEY_MAP:
                self.machine.set_key(KEY_MAP[event.key], False)
        return True

    def _debug_lines(self, fps: float):
        state = self.machine.state
        lines = [
            f"PC: 0x{int(state.pc):03X}  I: 0x{int(state.I):03X}",
            f"DT: {int(state.delay_timer)}  ST: {int(state.sound_timer)}",
            f"State: {'PAUSED' if self.paused else state.status.name}",
            f"Cycles: {self.machine.clock.cycles_executed}  FPS: {fps:.1f}",
        ]
        for i in range(0, 16, 4):
            lines.append(" ".join(f"V{j:X}:{int(state.V[j]):02X}" for j in range(i, i + 4)))
        return lines

    def _render(self, screen, font, fps: float):
        rgb = chip8_display_to_rgb(self.machine.snapshot(), self.scale, self.on_color, self.off_color)
        # surfarray is indexed (x, y)
        screen.blit(pygame.surfarray.make_surface(rgb.swapaxes(0, 1)), (0, 0))

        if self.show_debug:
            draw_overlay_text(screen, self._debug_lines(fps), (5, 5), font, alpha=100)
        if self.machine.halted:
            draw_overlay_text(
                screen, ["HALTED", str(self.machine.halt_reason), "F5 to reset"],
                (5, 32 * self.scale - 3 * font.get_height() - 12), font,
                text_color=(255, 80, 80), alpha=160,
            )
        elif self.paused:
            draw_overlay_text(screen, ["PAUSED - P to resume"], (5, 5), font, text_color=(255, 255, 0))
        pygame.display.flip()

    def run(self):
        pygame.init()
        screen = pygame.display.set_mode((64 * self.scale, 32 * self.scale))
        pygame.display.set_caption("chip8kit")
        font = pygame.font.Font(None, 18)
        clock = pygame.time.Clock()
        self._init_audio()

        start_time = time.time()
        running = True
        try:
            while running:
                elapsed = clock.tick(FPS) / 1000.0
                running = self._handle_events()
                if running and not self.paused:
                    self.machine.advance(elapsed)
                self._update_audio()
                self._render(screen, font, clock.get_fps())
        finally:
            self.machine.request_stop()
            self.logger.log_run_summary(
                self.machine.clock.cycles_executed,
                self.machine.clock.ticks_elapsed,
                time.time() - start_time,
            )
            pygame.quit()


def run_window(machine: Machine):
    Frontend(machine).run()
