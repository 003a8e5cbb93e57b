"""Caster, shadow resolver, Fresnel and recursion-depth tests for the tracer."""

from __future__ import annotations

import unittest
from unittest import mock

import numpy as np

from rt_core import tracer
from rt_core.errors import MissingMaterialError
from rt_core.geometry import Plane
from rt_core.lights import DirectionalLight, PointLight
from rt_core.material import Material
from rt_core.rays import Collision, CollisionKind, Ray
from rt_core.scene import Scene
from rt_core.shapes import Sphere
from rt_core.tracer import (
    TraceConfig,
    cast,
    fresnel_reflectance,
    fresnel_zero,
    reflection_contribution,
    shade,
    shadow_factor,
    trace,
)

UP = np.array([0.0, 1.0, 0.0])


def _scene(shapes=(), lights=(), materials=(), background=(0.0, 0.0, 0.0)) -> Scene:
    return Scene(
        eye=np.array([0.0, 0.0, 5.0]),
        view=np.array([0.0, 0.0, -1.0]),
        up=UP,
        fov_deg=60.0,
        width=4,
        height=4,
        background=np.asarray(background, dtype=float),
        shapes=shapes,
        lights=lights,
        materials=materials,
    )


def _horizontal_plane(y: float, material: int) -> Plane:
    # u x v = +y
    return Plane(origin=np.array([0.0, y, 0.0]), u=np.array([0.0, 0.0, 1.0]), v=np.array([1.0, 0.0, 0.0]), material=material)


def _floor_hit(material: Material) -> Collision:
    return Collision(
        kind=CollisionKind.SURFACE,
        point=np.zeros(3),
        distance=1.0,
        normal=UP.copy(),
        incident=UP.copy(),
        material=material,
    )


class CastTests(unittest.TestCase):
    def test_nearest_of_several_shapes_with_material_resolved(self) -> None:
        near = Material.matte([1.0, 0.0, 0.0])
        far = Material.matte([0.0, 1.0, 0.0])
        sc = _scene(
            shapes=(Sphere(np.array([0.0, 0.0, -3.0]), 1.0, material=1), Sphere(np.zeros(3), 1.0, material=0)),
            materials=(near, far),
        )
        hit = cast(Ray(sc.eye, sc.view), sc)
        self.assertAlmostEqual(hit.distance, 4.0)
        self.assertIs(hit.material, near)

    def test_miss_returns_none(self) -> None:
        sc = _scene(shapes=(Sphere(np.zeros(3), 1.0, material=0),), materials=(Material(),))
        self.assertIs(cast(Ray(sc.eye, np.array([0.0, 1.0, 0.0])), sc).kind, CollisionKind.NONE)

    def test_self_hit_at_origin_is_skipped_for_far_wall(self) -> None:
        sc = _scene(shapes=(Sphere(np.zeros(3), 1.0, material=0),), materials=(Material(),))
        hit = cast(Ray(np.array([0.0, 0.0, 1.0]), np.array([0.0, 0.0, -1.0])), sc)
        self.assertAlmostEqual(hit.distance, 2.0)
        np.testing.assert_allclose(hit.point, [0.0, 0.0, -1.0], atol=1e-12)

    def test_missing_material_aborts_cast(self) -> None:
        sc = _scene(shapes=(Sphere(np.zeros(3), 1.0, material=3),), materials=(Material(),))
        with self.assertRaises(MissingMaterialError):
            cast(Ray(sc.eye, sc.view), sc)
        with self.assertRaises(MissingMaterialError):
            sc.validate()

    def test_material_less_shape_behind_the_hit_still_aborts_cast(self) -> None:
        sc = _scene(
            shapes=(Sphere(np.zeros(3), 1.0, material=0), Sphere(np.array([0.0, 0.0, -4.0]), 1.0, material=None)),
            materials=(Material(),),
        )
        with self.assertRaises(MissingMaterialError):
            cast(Ray(sc.eye, sc.view), sc)


class ShadowTests(unittest.TestCase):
    def setUp(self) -> None:
        self.floor = Material.matte([1.0, 1.0, 1.0])
        self.light = PointLight(position=np.array([0.0, 10.0, 0.0]), color=np.ones(3))

    def _factor(self, opacities: list[float], light=None) -> float:
        materials = [self.floor] + [Material(opacity=o) for o in opacities]
        shapes = [_horizontal_plane(0.0, 0)] + [_horizontal_plane(2.0 * (i + 1), i + 1) for i in range(len(opacities))]
        sc = _scene(shapes=tuple(shapes), lights=(self.light,), materials=tuple(materials))
        return shadow_factor(_floor_hit(self.floor), light or self.light, sc)

    def test_unobstructed_is_fully_lit(self) -> None:
        self.assertEqual(self._factor([]), 1.0)

    def test_opaque_occluder_blocks(self) -> None:
        self.assertEqual(self._factor([1.0]), 0.0)

    def test_translucent_occluders_multiply(self) -> None:
        self.assertAlmostEqual(self._factor([0.5]), 0.5)
        self.assertAlmostEqual(self._factor([0.5, 0.5]), 0.25)
        self.assertAlmostEqual(self._factor([0.5, 0.5, 1.0]), 0.0)

    def test_occluder_beyond_point_light_is_ignored(self) -> None:
        low = PointLight(position=np.array([0.0, 1.0, 0.0]), color=np.ones(3))
        self.assertEqual(self._factor([1.0], light=low), 1.0)

    def test_directional_light_sees_every_occluder(self) -> None:
        sun = DirectionalLight(direction=np.array([0.0, -1.0, 0.0]), color=np.ones(3))
        self.assertAlmostEqual(self._factor([0.5, 0.5], light=sun), 0.25)

    def _sphere_factor(self, opacities: list[float]) -> float:
        materials = [self.floor] + [Material(opacity=o) for o in opacities]
        shapes = [_horizontal_plane(0.0, 0)] + [
            Sphere(np.array([0.0, 3.0 * (i + 1), 0.0]), 1.0, material=i + 1) for i in range(len(opacities))
        ]
        sc = _scene(shapes=tuple(shapes), lights=(self.light,), materials=tuple(materials))
        return shadow_factor(_floor_hit(self.floor), self.light, sc)

    def test_translucent_sphere_is_counted_once(self) -> None:
        self.assertAlmostEqual(self._sphere_factor([0.5]), 0.5)
        self.assertAlmostEqual(self._sphere_factor([0.5, 0.5]), 0.25)
        self.assertEqual(self._sphere_factor([1.0]), 0.0)


class FresnelTests(unittest.TestCase):
    def test_normal_incidence_reflectance(self) -> None:
        self.assertAlmostEqual(fresnel_zero(Material(refraction=1.5), 1.0), 0.04)
        self.assertAlmostEqual(fresnel_zero(Material(refraction=1.5, opacity=0.2), 1.5), 0.0)
        self.assertAlmostEqual(fresnel_zero(Material(refraction=1.5, opacity=0.2), 1.0), 0.04)

    def test_schlick_bounds(self) -> None:
        f0 = 0.04
        self.assertAlmostEqual(fresnel_reflectance(1.0, f0), f0)
        self.assertAlmostEqual(fresnel_reflectance(0.0, f0), 1.0)
        values = [fresnel_reflectance(c, f0) for c in np.linspace(0.0, 1.0, 11)]
        for v in values:
            self.assertGreaterEqual(v, f0)
            self.assertLessEqual(v, 1.0)
        self.assertTrue(all(a >= b for a, b in zip(values, values[1:])))


class RecursionTests(unittest.TestCase):
    def _mirror_box(self) -> Scene:
        # Two facing planes at z = -1 and z = +1: every mirror ray bounces forever.
        mirror = Material(color=np.ones(3), ambient=0.1, diffuse=0.0, specular=0.0, refraction=1.5)
        front = Plane(origin=np.array([0.0, 0.0, -1.0]), u=np.array([1.0, 0.0, 0.0]), v=UP, material=0)
        back = Plane(origin=np.array([0.0, 0.0, 1.0]), u=UP, v=np.array([1.0, 0.0, 0.0]), material=0)
        return _scene(shapes=(front, back), materials=(mirror,))

    def test_zero_contribution_at_max_depth(self) -> None:
        sc = self._mirror_box()
        hit = cast(Ray(np.zeros(3), np.array([0.0, 0.0, -1.0])), sc)
        cfg = TraceConfig(max_depth=3)
        np.testing.assert_array_equal(reflection_contribution(hit, sc, 1.0, 3, cfg), np.zeros(3))
        self.assertGreater(float(reflection_contribution(hit, sc, 1.0, 0, cfg).sum()), 0.0)

    def test_recursion_depth_is_bounded(self) -> None:
        sc = self._mirror_box()
        cfg = TraceConfig(max_depth=5)
        with mock.patch("rt_core.tracer.reflection_contribution", wraps=tracer.reflection_contribution) as spy:
            color = trace(Ray(np.zeros(3), np.array([0.0, 0.0, -1.0])), sc, cfg)
        depths = [c.args[3] for c in spy.call_args_list]
        self.assertEqual(max(depths), cfg.max_depth - 1)
        self.assertEqual(len(depths), cfg.max_depth)
        self.assertTrue(np.all((color >= 0.0) & (color <= 1.0)))

    def test_max_depth_zero_disables_reflection(self) -> None:
        sc = self._mirror_box()
        with mock.patch("rt_core.tracer.reflection_contribution") as spy:
            trace(Ray(np.zeros(3), np.array([0.0, 0.0, -1.0])), sc, TraceConfig(max_depth=0))
        spy.assert_not_called()

    def test_negative_depth_config_rejected(self) -> None:
        with self.assertRaises(ValueError):
            TraceConfig(max_depth=-1)


class ShadeTests(unittest.TestCase):
    def test_miss_is_background(self) -> None:
        sc = _scene(background=(0.1, 0.2, 0.3))
        np.testing.assert_allclose(shade(Collision.none(), sc), [0.1, 0.2, 0.3])

    def test_ambient_only_color(self) -> None:
        mtl = Material(color=np.array([0.4, 0.6, 0.8]), ambient=0.5, diffuse=0.0, specular=0.0)
        sc = _scene(shapes=(Sphere(np.zeros(3), 1.0, material=0),), materials=(mtl,))
        np.testing.assert_allclose(trace(Ray(sc.eye, sc.view), sc), [0.2, 0.3, 0.4])

    def test_index_matched_clear_sphere_is_invisible(self) -> None:
        clear = Material(color=np.ones(3), ambient=0.0, diffuse=0.0, specular=0.0, opacity=0.0, refraction=1.0)
        red = Material(color=np.array([1.0, 0.0, 0.0]), ambient=1.0, diffuse=0.0, specular=0.0)
        wall = Plane(origin=np.array([0.0, 0.0, -3.0]), u=np.array([1.0, 0.0, 0.0]), v=UP, material=1)
        sc = _scene(shapes=(Sphere(np.zeros(3), 1.0, material=0), wall), materials=(clear, red))
        np.testing.assert_allclose(trace(Ray(sc.eye, sc.view), sc), [1.0, 0.0, 0.0], atol=1e-9)

    def test_lit_surface_is_brighter_than_shadowed(self) -> None:
        floor = Material.matte([1.0, 1.0, 1.0])
        lamp = PointLight(position=np.array([0.0, 10.0, 0.0]), color=np.ones(3))
        lit = _scene(shapes=(_horizontal_plane(0.0, 0),), lights=(lamp,), materials=(floor,))
        dark = _scene(
            shapes=(_horizontal_plane(0.0, 0), _horizontal_plane(2.0, 1)),
            lights=(lamp,),
            materials=(floor, Material(opacity=1.0)),
        )
        hit = _floor_hit(floor)
        np.testing.assert_allclose(shade(hit, lit, depth=TraceConfig().max_depth), [1.0, 1.0, 1.0])
        np.testing.assert_allclose(shade(hit, dark, depth=TraceConfig().max_depth), [0.2, 0.2, 0.2])


if __name__ == "__main__":
    unittest.main()
