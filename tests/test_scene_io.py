"""Scene text decoder tests."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

import numpy as np

from rt_core.geometry import Plane
from rt_core.image import Image
from rt_core.lights import DirectionalLight, PointLight, SpotLight
from rt_core.mesh import Face
from rt_core.shapes import Ellipsoid, Sphere
from rt_io.ppm_io import save_ppm
from rt_io.scene_io import SceneFormatError, load_scene, parse_scene

HEADER = """\
eye 0 0 5
viewdir 0 0 -1
updir 0 1 0
fovv 45
imsize 8 6
bkgcolor 0.1 0.2 0.3
"""


class SceneDecodeTests(unittest.TestCase):
    def test_camera_and_shapes(self) -> None:
        text = HEADER + """
# comment line
mtlcolor 1 0 0 1 1 1 0.1 0.7 0.2 20
sphere 0 0 0 1   # trailing comment
ellipsoid 2 0 0 1 0.5 0.5
mtlcolor 0 1 0 1 1 1 0.1 0.7 0.2 20 0.3 1.5
plane 0 -1 0 0 0 1 1 0 0
light 0 5 0 1 1 1 1
light 0 -1 0 0 0.5 0.5 0.5
spotlight 0 5 0 0 -1 0 15 1 1 1
"""
        sc = parse_scene(text)
        self.assertEqual((sc.width, sc.height), (8, 6))
        self.assertEqual(sc.fov_deg, 45.0)
        np.testing.assert_allclose(sc.background, [0.1, 0.2, 0.3])
        self.assertEqual([type(s) for s in sc.shapes], [Sphere, Ellipsoid, Plane])
        self.assertEqual([type(lt) for lt in sc.lights], [PointLight, DirectionalLight, SpotLight])
        self.assertEqual(len(sc.materials), 2)
        self.assertEqual(sc.shapes[0].material, sc.shapes[1].material)
        glass = sc.materials[sc.shapes[2].material]
        self.assertAlmostEqual(glass.opacity, 0.3)
        self.assertAlmostEqual(glass.refraction, 1.5)
        self.assertTrue(sc.materials[0].is_opaque)
        self.assertEqual(sc.projection, "perspective")

    def test_parallel_flag(self) -> None:
        self.assertEqual(parse_scene(HEADER + "parallel\n").projection, "parallel")

    def test_mesh_faces_in_all_vertex_forms(self) -> None:
        text = HEADER + """
mtlcolor 1 1 1 1 1 1 0.1 0.7 0.2 20
v 0 0 0
v 1 0 0
v 0 1 0
vn 0 0 1
vt 0 0
vt 1 0
vt 0 1
f 1 2 3
f 1/1 2/2 3/3
f 1//1 2//1 3//1
f 1/1/1 2/2/1 3/3/1
"""
        sc = parse_scene(text)
        self.assertEqual(len(sc.shapes), 4)
        self.assertTrue(all(isinstance(s, Face) for s in sc.shapes))
        self.assertIs(sc.shapes[0].mesh, sc.mesh)
        last = sc.shapes[3].corners
        self.assertEqual((last[1].vertex, last[1].texcoord, last[1].normal), (2, 2, 1))
        self.assertEqual(sc.shapes[2].corners[0].texcoord, 0)

    def test_faces_may_precede_vertices(self) -> None:
        text = HEADER + "mtlcolor 1 1 1 1 1 1 0.1 0.7 0.2 20\nf 1 2 3\nv 0 0 0\nv 1 0 0\nv 0 1 0\n"
        self.assertEqual(len(parse_scene(text).mesh.vertices), 3)

    def test_texture_applies_to_following_shapes(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            save_ppm(Path(td) / "tex.ppm", Image.blank(2, 2))
            scene_path = Path(td) / "scene.txt"
            scene_path.write_text(
                HEADER
                + "mtlcolor 1 1 1 1 1 1 0.1 0.7 0.2 20\n"
                + "sphere 0 0 0 1\n"
                + "texture tex.ppm\n"
                + "sphere 2 0 0 1\n"
                + "sphere 4 0 0 1\n"
                + "texture none\n"
                + "sphere 6 0 0 1\n",
                encoding="utf-8",
            )
            sc = load_scene(scene_path)
        mats = [sc.materials[s.material] for s in sc.shapes]
        self.assertEqual([m.texture for m in mats], [None, 0, 0, None])
        self.assertEqual(len(sc.textures), 1)
        self.assertEqual(len(sc.materials), 2)


class SceneErrorTests(unittest.TestCase):
    def assertBad(self, text: str, fragment: str) -> None:
        with self.assertRaises(SceneFormatError) as ctx:
            parse_scene(text)
        self.assertIn(fragment, str(ctx.exception))

    def test_missing_required_keyword(self) -> None:
        self.assertBad(HEADER.replace("fovv 45\n", ""), "fovv")

    def test_duplicate_keyword(self) -> None:
        self.assertBad(HEADER + "eye 1 1 1\n", "line 7")

    def test_wrong_argument_count(self) -> None:
        self.assertBad(HEADER + "mtlcolor 1 0 0 1 1 1 0.1 0.7 0.2\n", "mtlcolor")
        self.assertBad(HEADER + "sphere 0 0 0\n", "line 7")

    def test_unknown_keyword_and_bad_number(self) -> None:
        self.assertBad(HEADER + "cube 1 1 1\n", "cube")
        self.assertBad(HEADER + "mtlcolor 1 0 0 1 1 1 0.1 0.7 0.2 x\n", "line 7")

    def test_shape_before_material(self) -> None:
        self.assertBad(HEADER + "sphere 0 0 0 1\n", "mtlcolor")

    def test_face_index_out_of_range(self) -> None:
        self.assertBad(HEADER + "mtlcolor 1 1 1 1 1 1 0.1 0.7 0.2 20\nv 0 0 0\nf 1 2 3\n", "vertex index")
        self.assertBad(HEADER + "mtlcolor 1 1 1 1 1 1 0.1 0.7 0.2 20\nf 1 0 2\n", "positive")

    def test_invalid_camera(self) -> None:
        self.assertBad(HEADER.replace("updir 0 1 0", "updir 0 0 1"), "parallel")
        self.assertBad(HEADER.replace("fovv 45", "fovv 180"), "field of view")
        self.assertBad(HEADER.replace("imsize 8 6", "imsize 8 0"), "size")
        self.assertBad(HEADER.replace("imsize 8 6", "imsize 8.5 6"), "integral")

    def test_bad_material_values(self) -> None:
        self.assertBad(HEADER + "mtlcolor 1 1 1 1 1 1 0.1 0.7 0.2 20 1.5 1.5\nsphere 0 0 0 1\n", "opacity")

    def test_missing_texture_file(self) -> None:
        self.assertBad(HEADER + "texture nope.ppm\n", "nope.ppm")


if __name__ == "__main__":
    unittest.main()
