"""Light direction, spotlight cone and Blinn-Phong shading tests."""

from __future__ import annotations

import math
import unittest

import numpy as np

from rt_core.errors import MissingMaterialError, RenderError
from rt_core.image import Image
from rt_core.lights import DirectionalLight, PointLight, SpotLight, blinn_phong, in_spot_cone, light_direction
from rt_core.material import Material, object_color
from rt_core.rays import Collision, CollisionKind


def _collision(material: Material | None, texcoord=None) -> Collision:
    # Point at the origin on a +z facing surface, viewed from +z.
    return Collision(
        kind=CollisionKind.SURFACE,
        point=np.zeros(3),
        distance=1.0,
        normal=np.array([0.0, 0.0, 1.0]),
        incident=np.array([0.0, 0.0, 1.0]),
        material=material,
        texcoord=texcoord,
    )


class LightDirectionTests(unittest.TestCase):
    def test_point_light(self) -> None:
        lt = PointLight(position=np.array([0.0, 3.0, 4.0]), color=np.ones(3))
        to_light, dist = light_direction(lt, np.zeros(3))
        np.testing.assert_allclose(to_light, [0.0, 0.6, 0.8])
        self.assertAlmostEqual(dist, 5.0)

    def test_directional_light_is_infinitely_far(self) -> None:
        lt = DirectionalLight(direction=np.array([0.0, 0.0, -5.0]), color=np.ones(3))
        to_light, dist = light_direction(lt, np.array([7.0, 1.0, 2.0]))
        np.testing.assert_allclose(to_light, [0.0, 0.0, 1.0])
        self.assertTrue(math.isinf(dist))

    def test_spot_cone(self) -> None:
        spot = SpotLight(position=np.array([0.0, 0.0, 5.0]), direction=np.array([0.0, 0.0, -1.0]), angle_deg=10.0, color=np.ones(3))
        self.assertIsNotNone(light_direction(spot, np.zeros(3)))
        outside = np.array([5.0, 0.0, 0.0])
        self.assertIsNone(light_direction(spot, outside))
        self.assertIsNotNone(light_direction(spot, outside, check_cone=False))
        self.assertTrue(in_spot_cone(spot, np.array([0.0, 0.0, 1.0])))
        self.assertFalse(in_spot_cone(spot, np.array([0.0, 0.0, -1.0])))

    def test_unknown_light_type(self) -> None:
        with self.assertRaises(TypeError):
            light_direction(object(), np.zeros(3))


class BlinnPhongTests(unittest.TestCase):
    def test_head_on_light_gives_diffuse_plus_specular(self) -> None:
        mtl = Material(color=np.array([1.0, 0.0, 0.0]), highlight=np.ones(3), diffuse=0.5, specular=0.25, exponent=8)
        lt = PointLight(position=np.array([0.0, 0.0, 10.0]), color=np.ones(3))
        c = blinn_phong(lt, _collision(mtl), mtl.color)
        np.testing.assert_allclose(c, [0.75, 0.25, 0.25])

    def test_light_color_scales_result(self) -> None:
        mtl = Material(color=np.ones(3), diffuse=1.0, specular=0.0)
        lt = PointLight(position=np.array([0.0, 0.0, 10.0]), color=np.array([0.5, 0.0, 1.0]))
        np.testing.assert_allclose(blinn_phong(lt, _collision(mtl), mtl.color), [0.5, 0.0, 1.0])

    def test_light_behind_surface_contributes_nothing(self) -> None:
        mtl = Material(color=np.ones(3), diffuse=1.0, specular=1.0)
        lt = PointLight(position=np.array([0.0, 0.0, -10.0]), color=np.ones(3))
        np.testing.assert_allclose(blinn_phong(lt, _collision(mtl), mtl.color), [0.0, 0.0, 0.0])

    def test_zero_exponent_specular_needs_a_facing_halfway_vector(self) -> None:
        mtl = Material(color=np.ones(3), diffuse=0.0, specular=1.0, exponent=0)
        lt = PointLight(position=np.array([0.0, 0.0, -10.0]), color=np.ones(3))
        np.testing.assert_allclose(blinn_phong(lt, _collision(mtl), mtl.color), [0.0, 0.0, 0.0])

    def test_outside_spot_cone_is_none(self) -> None:
        mtl = Material()
        spot = SpotLight(position=np.array([10.0, 0.0, 1.0]), direction=np.array([1.0, 0.0, 0.0]), angle_deg=30.0, color=np.ones(3))
        self.assertIsNone(blinn_phong(spot, _collision(mtl), mtl.color))


class ObjectColorTests(unittest.TestCase):
    def test_flat_color_without_texture(self) -> None:
        mtl = Material(color=np.array([0.2, 0.4, 0.6]))
        np.testing.assert_allclose(object_color(_collision(mtl)), [0.2, 0.4, 0.6])

    def test_texture_sample_replaces_color(self) -> None:
        tex = Image(np.array([[[255, 0, 0], [0, 255, 0]]], dtype=np.uint8))
        mtl = Material(color=np.array([0.2, 0.4, 0.6]), texture=0)
        np.testing.assert_allclose(object_color(_collision(mtl, np.array([0.9, 0.5])), [tex]), [0.0, 1.0, 0.0])
        # No texcoord at the hit: flat colour.
        np.testing.assert_allclose(object_color(_collision(mtl), [tex]), [0.2, 0.4, 0.6])

    def test_missing_material_or_texture(self) -> None:
        with self.assertRaises(MissingMaterialError):
            object_color(_collision(None))
        with self.assertRaises(RenderError):
            object_color(_collision(Material(texture=3), np.array([0.5, 0.5])), [])


if __name__ == "__main__":
    unittest.main()
