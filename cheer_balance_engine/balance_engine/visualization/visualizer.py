# cheer_balance_engine/balance_engine/visualization/visualizer.py
import cv2
import numpy as np
from collections import deque
from typing import Mapping, Optional
from ..common.enums import BalanceStatus
from ..common.geometry import Vector3
from ..common.models import BalanceFrame
from ..processing.stability_analyzer import DEFAULT_WARNING_MARGIN, FEEDBACK_MESSAGES, classify_balance

# BGR
STATUS_COLORS = {
    BalanceStatus.GOOD: (0, 200, 0),
    BalanceStatus.NEAR_EDGE: (0, 220, 255),
    BalanceStatus.UNSTABLE: (0, 0, 255),
    BalanceStatus.UNKNOWN: (160, 160, 160),
}
BACKGROUND_COLOR = (38, 38, 38)
TRAIL_COLOR = (255, 255, 0)
JOINT_COLOR = (200, 200, 200)
HIGHLIGHT_COLOR = (0, 0, 255)
BOS_COLOR = (0, 200, 0)
PLACEHOLDER_COLOR = (140, 140, 140)
# Ground-plane (x, z) area outlined when no support polygon has been seen yet, in cm
PLACEHOLDER_AREA = np.array([[20.0, -20.0], [-20.0, -20.0], [-20.0, 20.0], [20.0, 20.0]])
NO_SUPPORT_TEXT = "No support polygon"

class Visualizer:
    """Top-down ground-plane view of the base of support, COM and its trail."""

    def __init__(self, config: dict, warning_margin: float = DEFAULT_WARNING_MARGIN):
        self.config = config
        width, height = config.get('canvas_size', (720, 720))
        self.canvas_size = (int(width), int(height))
        self.pixels_per_cm = float(config.get('pixels_per_cm', 4.0))
        self.warning_margin = warning_margin
        # Oldest first; eviction is strict FIFO
        self.trail = deque(maxlen=config.get('trail_length', 50))
        self.show_overlay = config.get('draw_overlay', True)
        self.last_polygon_points: Optional[np.ndarray] = None
        self.font = cv2.FONT_HERSHEY_SIMPLEX

    def update(self, frame: BalanceFrame) -> None:
        """Frame listener: records the new COM on the trail."""
        self.trail.append(frame.com)

    def toggle_overlay(self) -> bool:
        """Shows or hides the support polygon and COM trail overlay."""
        self.show_overlay = not self.show_overlay
        return self.show_overlay

    def to_pixel(self, point: np.ndarray) -> tuple:
        """Maps a ground-plane (x, z) point in cm to canvas pixel coordinates, +z pointing up."""
        width, height = self.canvas_size
        u = width / 2 + point[0] * self.pixels_per_cm
        v = height / 2 - point[1] * self.pixels_per_cm
        return int(round(u)), int(round(v))

    def render(self, frame: Optional[BalanceFrame], joints: Mapping[str, Vector3], current_fps: float) -> np.ndarray:
        """Renders the balance state onto a fresh canvas."""
        width, height = self.canvas_size
        output_frame = np.full((height, width, 3), BACKGROUND_COLOR, dtype=np.uint8)

        status = classify_balance(frame.stability if frame else None, self.warning_margin)

        if self.show_overlay and frame is not None:
            if frame.polygon is not None:
                self.last_polygon_points = frame.polygon.points
                self._draw_support_polygon(output_frame, frame.polygon.points)
            else:
                self._draw_placeholder(output_frame)

        if self.config.get('draw_joints', True):
            highlighted = set(frame.highlighted_segments) if frame else set()
            for name, position in joints.items():
                color = HIGHLIGHT_COLOR if name in highlighted else JOINT_COLOR
                radius = 6 if name in highlighted else 3
                cv2.circle(output_frame, self.to_pixel(position.ground()), radius, color, -1, cv2.LINE_AA)

        if self.show_overlay:
            self._draw_trail(output_frame)

        if frame is not None:
            center = self.to_pixel(frame.com.ground())
            color = STATUS_COLORS[status]
            # Plumb line foot of the COM
            cv2.drawMarker(output_frame, center, (255, 255, 255), cv2.MARKER_CROSS, 24, 1, cv2.LINE_AA)
            cv2.circle(output_frame, center, 8, color, -1, cv2.LINE_AA)

        if self.config.get('draw_hud', True):
            self._draw_hud(output_frame, frame, status, current_fps)

        return output_frame

    def _draw_support_polygon(self, canvas: np.ndarray, points: np.ndarray):
        pixels = np.array([self.to_pixel(point) for point in points], dtype=np.int32)
        overlay = canvas.copy()
        cv2.fillPoly(overlay, [pixels], BOS_COLOR)
        cv2.addWeighted(overlay, 0.3, canvas, 0.7, 0, dst=canvas)
        cv2.polylines(canvas, [pixels], True, (255, 255, 255), 1, cv2.LINE_AA)

    def _draw_placeholder(self, canvas: np.ndarray):
        """Dashed outline where the feet were last seen, labelled as missing."""
        area = self.last_polygon_points if self.last_polygon_points is not None else PLACEHOLDER_AREA
        pixels = [self.to_pixel(point) for point in area]
        for start, end in zip(pixels, pixels[1:] + pixels[:1]):
            self._draw_dashed_line(canvas, start, end, PLACEHOLDER_COLOR)

        left = min(u for u, _ in pixels)
        top = min(v for _, v in pixels)
        cv2.putText(canvas, NO_SUPPORT_TEXT, (left, max(top - 10, 20)), self.font, 0.5, PLACEHOLDER_COLOR, 1, cv2.LINE_AA)

    @staticmethod
    def _draw_dashed_line(canvas: np.ndarray, start: tuple, end: tuple, color: tuple, dash: int = 8):
        start = np.array(start, dtype=np.float64)
        end = np.array(end, dtype=np.float64)
        length = np.linalg.norm(end - start)
        steps = max(int(length // dash), 1)
        for i in range(0, steps, 2):
            a = start + (end - start) * (i / steps)
            b = start + (end - start) * (min(i + 1, steps) / steps)
            cv2.line(canvas, tuple(int(round(c)) for c in a), tuple(int(round(c)) for c in b), color, 1)

    def _draw_trail(self, canvas: np.ndarray):
        """Older trail points fade towards the background."""
        count = len(self.trail)
        for i, position in enumerate(self.trail):
            alpha = (i + 1) / count
            color = tuple(int(c * alpha + b * (1 - alpha)) for c, b in zip(TRAIL_COLOR, BACKGROUND_COLOR))
            cv2.circle(canvas, self.to_pixel(position.ground()), 2, color, -1, cv2.LINE_AA)

    def _draw_hud(self, canvas: np.ndarray, frame: Optional[BalanceFrame], status: BalanceStatus, fps: float):
        """Draws the COM readout and stability status."""
        hud_elements = [f"FPS: {fps:.1f}"]
        if frame is None:
            hud_elements.append("COM: --")
        else:
            com = frame.com
            hud_elements += [
                f"COM: ({com.x:.2f}, {com.y:.2f}, {com.z:.2f}) cm",
                f"Processing: {frame.processing_time_ms:.2f} ms",
            ]

        if frame is None or frame.stability is None:
            hud_elements += ["Margin: -- cm", "Status: --", FEEDBACK_MESSAGES[status]]
            if frame is not None:
                hud_elements.append(NO_SUPPORT_TEXT)
        else:
            stable_text = "Stable" if frame.stability.is_stable else "Unstable"
            hud_elements += [
                f"Margin: {frame.stability.margin:.1f} cm",
                f"Status: {stable_text}",
                FEEDBACK_MESSAGES[status],
            ]
        if frame is not None and frame.highlighted_joint:
            hud_elements.append(f"Unstable segment: {frame.highlighted_joint}")

        for i, text in enumerate(hud_elements):
            color = STATUS_COLORS[status] if text == FEEDBACK_MESSAGES[status] else (240, 240, 240)
            cv2.putText(canvas, text, (10, 30 + i * 26), self.font, 0.6, color, 1, cv2.LINE_AA)
