"""
Tests for Visualization Module
===============================
"""

import numpy as np
import pytest
import sys
from pathlib import Path

import cv2

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pinch_drag.capture.camera import Frame
from pinch_drag.control.object_registry import DraggableObject
from pinch_drag.core.types import Renderer
from pinch_drag.utils.visualization import Visualizer, VisualizerConfig

from fakes import make_hand


class TestVisualizerConfig:
    """Test suite for VisualizerConfig."""

    def test_from_dict(self):
        config = VisualizerConfig.from_dict({
            "sprite_size": {"width": 64, "height": 48},
            "colors": {"grabbed": [1, 2, 3]},
            "mirror": False,
        })

        assert config.sprite_size == (64, 48)
        assert config.grabbed_color == (1, 2, 3)
        assert config.mirror is False

    def test_from_dict_null_sections(self):
        config = VisualizerConfig.from_dict({"colors": None, "sprite_size": None})

        assert config.sprite_size == (80, 80)
        assert config.grabbed_color == (0, 200, 0)


class TestVisualizer:
    """Test suite for Visualizer."""

    @pytest.fixture
    def viz(self, tmp_path):
        return Visualizer(config=VisualizerConfig(assets_dir=str(tmp_path)))

    def test_is_renderer(self, viz):
        assert isinstance(viz, Renderer)

    def test_blank_canvas_without_frame(self, viz):
        viz.render([], [])

        assert viz.canvas.shape == (480, 640, 3)
        assert not viz.canvas.any()

    def test_background_is_mirrored(self):
        image = np.zeros((480, 640, 3), dtype=np.uint8)
        image[:, :10] = 255  # left stripe
        viz = Visualizer()

        viz.render([], [], frame=Frame(image=image))

        assert viz.canvas[240, 635].tolist() == [255, 255, 255]
        assert viz.canvas[240, 5].tolist() == [0, 0, 0]

    def test_frame_image_not_modified(self):
        image = np.zeros((480, 640, 3), dtype=np.uint8)
        viz = Visualizer(VisualizerConfig(mirror=False))

        viz.render([], [DraggableObject("banana", x=100, y=100, grabbed=True)], frame=Frame(image=image))

        assert not image.any()
        assert viz.canvas.any()

    def test_placeholder_for_missing_sprite(self, viz):
        viz.render([], [DraggableObject("banana", asset_ref="missing.png", x=100, y=100)])

        assert viz.canvas[150, 110].tolist() == list(viz.config.placeholder_color)

    def test_grabbed_object_has_border(self, viz):
        viz.render([], [DraggableObject("banana", x=100, y=100, grabbed=True)])

        assert viz.canvas[99, 140].tolist() == list(viz.config.grabbed_color)

    def test_sprite_loaded_and_resized(self, tmp_path):
        sprite = np.full((20, 20, 3), 77, dtype=np.uint8)
        cv2.imwrite(str(tmp_path / "box.png"), sprite)
        viz = Visualizer(config=VisualizerConfig(assets_dir=str(tmp_path)))

        viz.render([], [DraggableObject("box", asset_ref="box.png", x=10, y=10)])

        assert viz.canvas[50, 50].tolist() == [77, 77, 77]
        assert viz.canvas[95, 95].tolist() == [0, 0, 0]

    def test_sprite_clipped_at_edges(self, tmp_path):
        cv2.imwrite(str(tmp_path / "box.png"), np.full((80, 80, 3), 200, dtype=np.uint8))
        viz = Visualizer(config=VisualizerConfig(assets_dir=str(tmp_path)))

        viz.render([], [
            DraggableObject("a", asset_ref="box.png", x=-40, y=-40),
            DraggableObject("b", asset_ref="box.png", x=600, y=450),
            DraggableObject("c", asset_ref="box.png", x=2000, y=2000),
        ])

        assert viz.canvas[0, 0].tolist() == [200, 200, 200]
        assert viz.canvas[479, 639].tolist() == [200, 200, 200]

    def test_alpha_sprite_blends(self, tmp_path):
        sprite = np.zeros((80, 80, 4), dtype=np.uint8)
        sprite[:, :, 1] = 255
        sprite[:40, :, 3] = 255  # top half opaque, bottom transparent
        cv2.imwrite(str(tmp_path / "half.png"), sprite)
        viz = Visualizer(config=VisualizerConfig(assets_dir=str(tmp_path)))

        viz.render([], [DraggableObject("h", asset_ref="half.png", x=0, y=0)])

        assert viz.canvas[10, 10].tolist() == [0, 255, 0]
        assert viz.canvas[70, 10].tolist() == [0, 0, 0]

    def test_landmarks_drawn_mirrored(self, viz):
        viz.render([make_hand((120, 120))], [])

        # Index fingertip dot at the pinch point in display coordinates
        assert viz.canvas[120, 120].tolist() == list(viz.config.landmark_color)

    def test_render_does_not_mutate_objects(self, viz):
        obj = DraggableObject("banana", x=100, y=100, grabbed=True)

        viz.render([], [obj])

        assert (obj.x, obj.y, obj.grabbed) == (100, 100, True)

    def test_loading_screen(self, viz):
        canvas = viz.draw_loading()

        assert canvas.any()
        assert viz.canvas is canvas

    def test_status_lines(self, viz):
        viz.status_lines = ["Processing: 20.0 Hz"]

        viz.render([], [])

        assert viz.canvas[:40, :200].any()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
