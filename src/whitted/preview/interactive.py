"""GGUI window for viewing and steering mirror-sphere renders.

Two ways to use it:

Static display of an already processed image:
    >>> import numpy as np
    >>> from whitted.preview.interactive import InteractivePreview
    >>>
    >>> preview = InteractivePreview(512, 512)
    >>> preview.update_image(np.zeros((512, 512, 3), dtype=np.float32))
    >>> preview.run()

Live scene with sliders for the bounce limit, mirror reflectance and orbit
camera. A pass is traced only after a control changes, since identical
inputs always produce the identical image:
    >>> from whitted.scene.presets import MirrorSpheresParams
    >>>
    >>> preview = InteractivePreview(640, 480)
    >>> preview.set_params(MirrorSpheresParams(), bounce_limit=3)
    >>> preview.run_reactive()
"""

from __future__ import annotations

import copy
import dataclasses
import logging
import os
from datetime import datetime
from typing import TYPE_CHECKING

import numpy as np
import taichi as ti

from whitted.core.config import DEFAULT_BOUNCE_LIMIT, MAX_BOUNCES, TracerConfig

if TYPE_CHECKING:
    import numpy.typing as npt

    from whitted.core.renderer import Renderer
    from whitted.scene.presets import MirrorSpheresParams

logger = logging.getLogger(__name__)

# Slider ranges
MIN_CAMERA_DISTANCE = 2.0
MAX_CAMERA_DISTANCE = 20.0
MAX_CAMERA_TILT = 89.0

# Fields that only move the camera; changing them does not rebuild the scene
_CAMERA_FIELDS = ("camera_distance", "camera_rotation_x", "camera_rotation_y", "aspect_ratio")


class InteractivePreview:
    """Taichi GGUI window showing a (height, width, 3) display image.

    The window and canvas are created on first use, so an instance can be
    built and fed images on a headless machine.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        display_image: (width, height) vec3 field presented on the canvas.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        title: str = "Mirror Spheres - Interactive Preview",
    ) -> None:
        self.width = width
        self.height = height
        self._title = title
        self._is_initialized = False

        self._window: ti.ui.Window | None = None
        self._canvas: ti.ui.Canvas | None = None
        self.display_image: ti.MatrixField = ti.Vector.field(3, dtype=ti.f32, shape=(width, height))

        self._pending_params: MirrorSpheresParams | None = None
        self._current_params: MirrorSpheresParams | None = None
        self._bounce_limit = DEFAULT_BOUNCE_LIMIT
        self._renderer: Renderer | None = None
        self._dirty = True

    def _initialize_window(self) -> None:
        if self._is_initialized:
            return

        self._window = ti.ui.Window(name=self._title, res=(self.width, self.height), vsync=True)
        self._canvas = self._window.get_canvas()
        self._is_initialized = True

    @property
    def window(self) -> ti.ui.Window:
        """GGUI window, opened on first access."""
        self._initialize_window()
        assert self._window is not None
        return self._window

    @property
    def canvas(self) -> ti.ui.Canvas:
        """Canvas of the GGUI window, opened on first access."""
        self._initialize_window()
        assert self._canvas is not None
        return self._canvas

    def update_image(self, image: npt.NDArray[np.float32]) -> None:
        """Copy a display-ready image into the canvas field.

        Args:
            image: (height, width, 3) values in [0, 1], row 0 at the top.
                Tone map and gamma encode before calling.

        Raises:
            ValueError: If the shape is not (height, width, 3).
        """
        expected_shape = (self.height, self.width, 3)
        if image.shape != expected_shape:
            raise ValueError(f"Image shape {image.shape} doesn't match expected {expected_shape}")

        # Canvas fields are indexed (x, y) from the bottom-left corner
        columns = np.transpose(np.flipud(image), (1, 0, 2))
        self.display_image.from_numpy(np.ascontiguousarray(columns, dtype=np.float32))

    def is_running(self) -> bool:
        return self.window.running

    def show_frame(self) -> None:
        """Present the current display image."""
        self.canvas.set_image(self.display_image)
        self.window.show()

    def run(self) -> None:
        """Show the display image until the window is closed."""
        while self.is_running():
            self.show_frame()

    def close(self) -> None:
        if self._window is not None:
            self._window.running = False

    @staticmethod
    def is_display_available() -> bool:
        """Best-effort check for a usable display; False when headless."""
        if os.name == "nt":
            return True

        x11 = os.environ.get("DISPLAY")
        if os.uname().sysname == "Darwin":
            # Only an SSH session without X forwarding lacks a display
            return not (os.environ.get("SSH_CONNECTION") and not x11)

        return bool(x11 or os.environ.get("WAYLAND_DISPLAY"))

    def set_params(self, params: MirrorSpheresParams, bounce_limit: int | None = None) -> None:
        """Set the scene parameters and bounce limit for reactive rendering.

        Args:
            params: The MirrorSpheresParams to build the scene from.
            bounce_limit: Mirror bounce limit. None keeps the current value.

        Raises:
            ValueError: If the bounce limit is outside [0, MAX_BOUNCES].
        """
        # Callers may keep mutating their own params object
        self._pending_params = copy.deepcopy(params)
        if bounce_limit is not None:
            self.set_bounce_limit(bounce_limit)
        self._dirty = True

    def set_bounce_limit(self, bounce_limit: int) -> None:
        """Change the bounce limit used by the next pass.

        Raises:
            ValueError: If the bounce limit is outside [0, MAX_BOUNCES].
        """
        TracerConfig(bounce_limit=bounce_limit).validate()
        if bounce_limit != self._bounce_limit:
            self._bounce_limit = bounce_limit
            self._dirty = True

    @property
    def bounce_limit(self) -> int:
        """The bounce limit used by the next pass."""
        return self._bounce_limit

    def _scene_changed(self) -> bool:
        """Check whether the scene (not just the camera) must be rebuilt."""
        if self._pending_params is None:
            return False
        if self._current_params is None:
            return True

        pending = dataclasses.asdict(self._pending_params)
        current = dataclasses.asdict(self._current_params)
        return any(pending[k] != current[k] for k in pending if k not in _CAMERA_FIELDS)

    def _rebuild_scene(self) -> None:
        """Rebuild the scene and camera from the pending parameters."""
        from whitted.camera.pinhole import setup_camera
        from whitted.scene.presets import MirrorSpheresParams, create_mirror_spheres_scene

        if self._pending_params is None:
            self._pending_params = MirrorSpheresParams(aspect_ratio=self.width / self.height)

        _, camera = create_mirror_spheres_scene(self._pending_params)
        setup_camera(camera)
        self._current_params = copy.deepcopy(self._pending_params)

    def _update_camera(self) -> None:
        """Move the camera to the pending orbit without touching the scene."""
        from whitted.camera.pinhole import orbit_camera, setup_camera
        from whitted.scene.presets import SCENE_CENTER

        params = self._pending_params
        assert params is not None
        setup_camera(
            orbit_camera(
                distance=params.camera_distance,
                rotation_x=params.camera_rotation_x,
                rotation_y=params.camera_rotation_y,
                target=SCENE_CENTER,
                vfov=45.0,
                aspect_ratio=params.aspect_ratio,
            )
        )
        self._current_params = copy.deepcopy(params)

    def _ensure_renderer(self) -> Renderer:
        """Ensure the renderer is initialized."""
        from whitted.core.renderer import Renderer

        if self._renderer is None:
            self._renderer = Renderer(self.width, self.height)
        return self._renderer

    def get_renderer(self) -> Renderer | None:
        """Get the underlying renderer, or None if not initialized."""
        return self._renderer

    def render_if_needed(self) -> bool:
        """Render one pass if the scene, camera or bounce limit changed.

        Returns:
            True if a pass was rendered.
        """
        renderer = self._ensure_renderer()

        if self._scene_changed():
            self._rebuild_scene()
            self._dirty = True
        elif self._pending_params != self._current_params:
            self._update_camera()
            self._dirty = True

        if not self._dirty:
            return False

        renderer.config = TracerConfig(bounce_limit=self._bounce_limit)
        renderer.render()
        self.update_image(renderer.get_image_numpy(gamma=2.2))
        self._dirty = False
        return True

    def run_reactive(self) -> None:
        """Run the reactive rendering loop until the window is closed.

        GUI Controls:
            - Bounce limit slider (0 to MAX_BOUNCES)
            - Camera distance and orbit sliders
            - Mirror reflectance slider for the small spheres
            - Export PNG button
        """
        from whitted.scene.presets import MirrorSpheresParams

        self._initialize_window()
        self._ensure_renderer()

        if self._pending_params is None:
            self._pending_params = MirrorSpheresParams(aspect_ratio=self.width / self.height)
        self._rebuild_scene()
        self._dirty = True

        while self.is_running():
            self.render_if_needed()
            self._draw_gui_panel()
            self.show_frame()

    def _draw_gui_panel(self) -> None:
        """Draw the GUI panel with tracer, camera and export controls."""
        params = self._pending_params
        assert params is not None

        with self.window.GUI.sub_window("Tracer", 0.02, 0.02, 0.3, 0.12) as gui:
            new_bounces = gui.slider_int(
                "Bounce limit", self._bounce_limit, minimum=0, maximum=MAX_BOUNCES
            )
            new_specular = gui.slider_float(
                "Reflectance", params.sphere_specular[0], minimum=0.0, maximum=1.0
            )

        with self.window.GUI.sub_window("Camera", 0.02, 0.15, 0.3, 0.16) as gui:
            new_distance = gui.slider_float(
                "Distance",
                params.camera_distance,
                minimum=MIN_CAMERA_DISTANCE,
                maximum=MAX_CAMERA_DISTANCE,
            )
            new_rot_x = gui.slider_float(
                "Tilt", params.camera_rotation_x, minimum=-MAX_CAMERA_TILT, maximum=MAX_CAMERA_TILT
            )
            new_rot_y = gui.slider_float(
                "Orbit", params.camera_rotation_y, minimum=-180.0, maximum=180.0
            )

        with self.window.GUI.sub_window("Export", 0.02, 0.32, 0.3, 0.08) as gui:
            if gui.button("Export PNG"):
                self._export_png()

        self.set_bounce_limit(new_bounces)

        changes = {}
        if abs(new_specular - params.sphere_specular[0]) > 1e-6:
            changes["sphere_specular"] = (new_specular, new_specular, new_specular)
        if abs(new_distance - params.camera_distance) > 1e-6:
            changes["camera_distance"] = new_distance
        if abs(new_rot_x - params.camera_rotation_x) > 1e-6:
            changes["camera_rotation_x"] = new_rot_x
        if abs(new_rot_y - params.camera_rotation_y) > 1e-6:
            changes["camera_rotation_y"] = new_rot_y
        if changes:
            self._pending_params = dataclasses.replace(params, **changes)

    def _export_png(self) -> str | None:
        """Export the current image to a timestamped PNG file.

        Returns:
            The file name written, or None if nothing has been rendered.
        """
        from whitted.preview.export import save_png

        renderer = self.get_renderer()
        if renderer is None:
            logger.warning("No renderer available for export")
            return None

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"mirror_spheres_{timestamp}.png"
        save_png(renderer, filename, gamma=2.2, with_alpha=False)
        logger.info("Exported %s (bounce limit %d)", filename, self._bounce_limit)
        return filename
