"""CHIP-8 rendering utilities for visualization."""
import numpy as np
from typing import Sequence, Tuple
import cv2

from PIL import Image

COLOR_SCHEMES = {
    "octo": ((179, 102, 184), (45, 25, 61)),  # Purple on plum
    "classic": ((0, 255, 0), (0, 0, 0)),  # Green on black
    "amber": ((255, 176, 0), (0, 0, 0)),  # Amber on black
    "white": ((255, 255, 255), (0, 0, 0)),  # White on black
    "blue": ((0, 255, 255), (0, 0, 64)),  # Cyan on dark blue
    "retro": ((255, 255, 0), (64, 0, 64)),  # Yellow on purple
}


def chip8_display_to_rgb(
    display: np.ndarray,
    scale: int = 8,
    on_color: Tuple[int, int, int] = (0, 255, 0),
    off_color: Tuple[int, int, int] = (0, 0, 0),
) -> np.ndarray:
    """Convert CHIP-8 boolean display to RGB array with optional upscaling.

    Args:
        display: Boolean array of shape (64, 32) representing CHIP-8 display
        scale: Upscaling factor for better visibility (default: 8x)
        on_color: RGB color for "on" pixels (default: green)
        off_color: RGB color for "off" pixels (default: black)

    Returns:
        RGB array of shape (height*scale, width*scale, 3) with uint8 values
    """
    pixels = np.array(display, dtype=np.bool_)

    # Original: (64 width, 32 height) -> Display: (32 height, 64 width)
    pixels = pixels.T
    height, width = pixels.shape

    rgb_frame = np.zeros((height, width, 3), dtype=np.uint8)

    rgb_frame[pixels] = on_color
    rgb_frame[~pixels] = off_color

    # Apply upscaling using nearest neighbor interpolation
    if scale > 1:
        rgb_frame = np.repeat(np.repeat(rgb_frame, scale, axis=0), scale, axis=1)

    return rgb_frame


def create_color_scheme(
    scheme: str = "classic",
) -> Tuple[Tuple[int, int, int], Tuple[int, int, int]]:
    """Get predefined color schemes for CHIP-8 rendering.

    Args:
        scheme: Color scheme name ("octo", "classic", "amber", "white", "blue", "retro")

    Returns:
        Tuple of (on_color, off_color) as RGB tuples
    """
    if scheme not in COLOR_SCHEMES:
        raise ValueError(
            f"Unknown color scheme '{scheme}'. Available: {list(COLOR_SCHEMES.keys())}"
        )

    return COLOR_SCHEMES[scheme]


def save_frame(display: np.ndarray, filename: str, scale: int = 8, color_scheme: str = "classic") -> None:
    """Save a single display snapshot as an image file (format from the extension)."""
    on_color, off_color = create_color_scheme(color_scheme)
    Image.fromarray(chip8_display_to_rgb(display, scale, on_color, off_color)).save(filename)


def phosphor_frames(frames: Sequence[np.ndarray], decay: float = 0.8) -> np.ndarray:
    """Blend successive frames so switched-off pixels fade out instead of flickering.

    Returns float intensities in [0, 1] with the same (N, 64, 32) shape.
    """
    displays = np.asarray(frames, dtype=np.float32)
    glow = np.zeros(displays.shape[1:], dtype=np.float32)
    blended = np.empty_like(displays)
    for i, frame in enumerate(displays):
        glow = np.clip(glow * decay + frame, 0.0, 1.0)
        blended[i] = glow
    return blended


def create_video(
        frames: Sequence[np.ndarray],
        filename: str,
        fps: float = 60.0,
        scale: int = 8,
        color_scheme: str = "classic",
        persistence: bool = True,
) -> int:
    """Save CHIP-8 display snapshots as an MP4 video.

    Args:
        frames: Display snapshots, shape (N, 64, 32)
        filename: Output MP4 file
        fps: Video frame rate
        scale: Upscaling factor
        color_scheme: Color scheme for rendering
        persistence: Enable phosphor screen simulation (smooth fading)

    Returns:
        Number of frames written
    """
    displays = np.asarray(frames, dtype=np.bool_)
    if len(displays.shape) != 3 or displays.shape[1:] != (64, 32):
        raise ValueError(f"Expected display shape (N, 64, 32), got {displays.shape}")

    height, width = 32 * scale, 64 * scale
    on_color, off_color = np.array(create_color_scheme(color_scheme), dtype=np.float32)
    intensities = phosphor_frames(displays) if persistence else displays.astype(np.float32)

    writer = cv2.VideoWriter(filename, cv2.VideoWriter_fourcc(*'mp4v'), fps, (width, height))
    try:
        for intensity in intensities:
            # (64, 32) -> (32, 64, 3), interpolated between the two colors
            pixel_values = intensity.T[:, :, None]
            frame = (off_color + pixel_values * (on_color - off_color)).astype(np.uint8)
            if scale > 1:
                frame = np.repeat(np.repeat(frame, scale, axis=0), scale, axis=1)
            writer.write(cv2.cvtColor(frame, cv2.COLOR_RGB2BGR))
    finally:
        writer.release()
    return len(intensities)
