"""Unit tests for the SceneManager.

Tests cover:
- Material registration and validation
- Primitive addition with materials (spheres, triangles, quads)
- Area, quad, point and background lights
- Scene serialization (to_config, from_config, to_dict, from_dict)
- Scene clearing
- Kernel-side consistency between lights and their emissive geometry
"""

import json

import pytest
import taichi as ti


@pytest.fixture
def fresh_scene():
    """Create a fresh SceneManager for each test."""
    from src.pathcore.scene.manager import SceneManager

    scene = SceneManager()
    yield scene
    scene.clear()


class TestMaterialRegistration:
    """Tests for material registration."""

    def test_add_material(self, fresh_scene):
        mat_id = fresh_scene.add_material((0.5, 0.5, 0.5))
        assert mat_id == 0
        assert fresh_scene.get_material_count() == 1

        info = fresh_scene.get_material_info(mat_id)
        assert info.diffuse == (0.5, 0.5, 0.5)
        assert info.specular == (0.0, 0.0, 0.0)

    def test_add_glossy_material(self, fresh_scene):
        mat_id = fresh_scene.add_material((0.1, 0.1, 0.1), (0.7, 0.7, 0.7), phong_exp=80.0)
        info = fresh_scene.get_material_info(mat_id)
        assert info.phong_exp == 80.0

        probs = fresh_scene.get_lobe_probabilities(mat_id)
        assert probs.diffuse == pytest.approx(0.125)
        assert probs.specular == pytest.approx(0.875)

    def test_material_validation(self, fresh_scene):
        with pytest.raises(ValueError):
            fresh_scene.add_material((1.5, 0.5, 0.5))
        with pytest.raises(ValueError):
            fresh_scene.add_material((0.5, 0.5, 0.5), phong_exp=-2.0)
        assert fresh_scene.get_material_count() == 0

    def test_get_material_info_unknown_id(self, fresh_scene):
        assert fresh_scene.get_material_info(3) is None

    def test_lobe_probabilities_unknown_id(self, fresh_scene):
        with pytest.raises(ValueError, match="Invalid material_id"):
            fresh_scene.get_lobe_probabilities(0)


class TestPrimitiveAddition:
    """Tests for adding primitives with materials."""

    def test_add_sphere_with_material(self, fresh_scene):
        mat_id = fresh_scene.add_material((0.5, 0.5, 0.5))
        assert fresh_scene.add_sphere((0.0, 0.0, -3.0), 1.0, mat_id) == 0
        assert fresh_scene.get_sphere_count() == 1

    def test_add_quad_creates_two_triangles(self, fresh_scene):
        mat_id = fresh_scene.add_material((0.5, 0.5, 0.5))
        first, second = fresh_scene.add_quad((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), mat_id)
        assert (first, second) == (0, 1)
        assert fresh_scene.get_triangle_count() == 2
        assert fresh_scene.quads[0].triangle_indices == (0, 1)

    def test_invalid_material_rejected(self, fresh_scene):
        with pytest.raises(ValueError, match="Invalid material_id"):
            fresh_scene.add_sphere((0.0, 0.0, -3.0), 1.0, 0)
        with pytest.raises(ValueError, match="Invalid material_id"):
            fresh_scene.add_triangle((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), 0)
        with pytest.raises(ValueError, match="Invalid material_id"):
            fresh_scene.add_quad((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), 5)

    def test_get_primitive_count(self, fresh_scene):
        mat_id = fresh_scene.add_material((0.5, 0.5, 0.5))
        fresh_scene.add_sphere((0.0, 0.0, -3.0), 1.0, mat_id)
        fresh_scene.add_triangle((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), mat_id)
        fresh_scene.add_quad((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), mat_id)
        assert fresh_scene.get_primitive_count() == 4

    def test_quad_front_face_follows_edge_cross_product(self, fresh_scene):
        """Test that both quad halves face normalize(u x v)."""
        from src.pathcore.scene.intersection import intersect_scene, vec3

        mat_id = fresh_scene.add_material((0.5, 0.5, 0.5))
        # u x v = +z
        fresh_scene.add_quad((-1.0, -1.0, -2.0), (2.0, 0.0, 0.0), (0.0, 2.0, 0.0), mat_id)
        front = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            # One ray into each triangle half
            front[0] = intersect_scene(vec3(0.5, -0.5, 0.0), vec3(0.0, 0.0, -1.0), 1e-4, 1e10).front_face
            front[1] = intersect_scene(vec3(-0.5, 0.5, 0.0), vec3(0.0, 0.0, -1.0), 1e-4, 1e10).front_face

        test_kernel()
        assert front[0] == 1
        assert front[1] == 1


class TestLights:
    """Tests for lights added through the manager."""

    def test_area_light_adds_light_and_geometry(self, fresh_scene):
        from src.pathcore.lights.light import LightType
        from src.pathcore.lights.registry import get_light_type

        light_id = fresh_scene.add_area_light(
            (-1.0, 2.0, -1.0), (1.0, 2.0, 1.0), (-1.0, 2.0, 1.0), (5.0, 5.0, 5.0)
        )
        assert light_id == 0
        assert fresh_scene.get_light_count() == 1
        assert fresh_scene.get_triangle_count() == 1
        assert get_light_type(light_id) == LightType.AREA

    def test_emissive_triangle_carries_light_id(self, fresh_scene):
        """Test that a ray hitting the light geometry reports the light id."""
        from src.pathcore.scene.intersection import SurfaceKind, intersect_scene, vec3

        fresh_scene.add_point_light((0.0, 5.0, 0.0), (1.0, 1.0, 1.0))
        light_id = fresh_scene.add_area_light(
            (-1.0, 2.0, -1.0), (1.0, 2.0, 1.0), (-1.0, 2.0, 1.0), (5.0, 5.0, 5.0)
        )
        kind = ti.field(dtype=ti.i32, shape=())
        surface_id = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            rec = intersect_scene(vec3(-0.5, 0.0, 0.5), vec3(0.0, 1.0, 0.0), 1e-4, 1e10)
            kind[None] = rec.surface_kind
            surface_id[None] = rec.surface_id

        test_kernel()
        assert kind[None] == int(SurfaceKind.LIGHT)
        assert surface_id[None] == light_id == 1

    def test_quad_light_creates_two_halves(self, fresh_scene):
        first, second = fresh_scene.add_quad_light(
            (0.0, 2.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 1.0), (10.0, 10.0, 10.0)
        )
        assert (first, second) == (0, 1)
        assert fresh_scene.get_light_count() == 2
        assert fresh_scene.get_triangle_count() == 2
        assert fresh_scene.lights[0].light_ids == (0, 1)

    def test_degenerate_area_light_rejected(self, fresh_scene):
        with pytest.raises(ValueError, match="Degenerate"):
            fresh_scene.add_area_light((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (2.0, 0.0, 0.0), (1.0, 1.0, 1.0))

    def test_area_light_rejected_when_triangles_full(self, fresh_scene):
        """Test that no light is registered when its triangle does not fit."""
        from src.pathcore.scene import intersection

        intersection.num_triangles[None] = intersection.MAX_TRIANGLES
        with pytest.raises(RuntimeError, match="triangles"):
            fresh_scene.add_area_light((-1.0, 2.0, -1.0), (1.0, 2.0, 1.0), (-1.0, 2.0, 1.0), (5.0, 5.0, 5.0))

        assert fresh_scene.get_light_count() == 0
        assert fresh_scene.lights == []
        assert fresh_scene.get_triangle_count() == intersection.MAX_TRIANGLES

    def test_quad_light_rejected_when_second_half_does_not_fit(self, fresh_scene):
        from src.pathcore.scene import intersection

        intersection.num_triangles[None] = intersection.MAX_TRIANGLES - 1
        with pytest.raises(RuntimeError, match="triangles"):
            fresh_scene.add_quad_light((0.0, 2.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 1.0), (10.0, 10.0, 10.0))

        assert fresh_scene.get_light_count() == 0
        assert fresh_scene.get_triangle_count() == intersection.MAX_TRIANGLES - 1
        assert fresh_scene.lights == []

    def test_quad_light_rejected_when_lights_nearly_full(self, fresh_scene):
        from src.pathcore.lights import registry

        registry.num_lights[None] = registry.MAX_LIGHTS - 1
        with pytest.raises(RuntimeError, match="lights"):
            fresh_scene.add_quad_light((0.0, 2.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 1.0), (10.0, 10.0, 10.0))

        assert fresh_scene.get_light_count() == registry.MAX_LIGHTS - 1
        assert fresh_scene.get_triangle_count() == 0

    def test_point_light_has_no_geometry(self, fresh_scene):
        fresh_scene.add_point_light((0.0, 3.0, 0.0), (4.0, 4.0, 4.0))
        assert fresh_scene.get_light_count() == 1
        assert fresh_scene.get_primitive_count() == 0

    def test_background_replaces_previous(self, fresh_scene):
        from src.pathcore.lights.registry import get_background_light_id

        first = fresh_scene.set_background_light((1.0, 1.0, 1.0))
        second = fresh_scene.set_background_light((0.2, 0.2, 0.2), scale=3.0, sample_directly=True)
        assert first == second == get_background_light_id()
        assert fresh_scene.get_light_count() == 1
        assert fresh_scene.background == {
            "intensity": [0.2, 0.2, 0.2],
            "scale": 3.0,
            "sample_directly": True,
        }


class TestSceneClearing:
    """Tests for scene clearing."""

    def test_clear_scene(self, fresh_scene):
        from src.pathcore.lights.registry import get_background_light_id

        mat_id = fresh_scene.add_material((0.5, 0.5, 0.5))
        fresh_scene.add_sphere((0.0, 0.0, -3.0), 1.0, mat_id)
        fresh_scene.add_quad_light((0.0, 2.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 1.0), (1.0, 1.0, 1.0))
        fresh_scene.set_background_light((1.0, 1.0, 1.0))

        fresh_scene.clear()

        assert fresh_scene.get_material_count() == 0
        assert fresh_scene.get_primitive_count() == 0
        assert fresh_scene.get_light_count() == 0
        assert get_background_light_id() == -1
        assert fresh_scene.lights == []
        assert fresh_scene.background is None

    def test_new_manager_clears_registries(self):
        from src.pathcore.scene.manager import SceneManager

        first = SceneManager()
        first.add_material((0.5, 0.5, 0.5))
        second = SceneManager()
        assert second.get_material_count() == 0


def _populate(scene):
    white = scene.add_material((0.7, 0.7, 0.7))
    glossy = scene.add_material((0.1, 0.1, 0.1), (0.6, 0.6, 0.6), 40.0)
    scene.add_sphere((0.0, 1.0, 0.0), 1.0, glossy)
    scene.add_triangle((-1.0, 0.0, -1.0), (1.0, 0.0, -1.0), (0.0, 0.0, 1.0), white)
    scene.add_quad((-5.0, 0.0, -5.0), (0.0, 0.0, 10.0), (10.0, 0.0, 0.0), white)
    scene.add_area_light((-1.0, 4.0, -1.0), (1.0, 4.0, 1.0), (-1.0, 4.0, 1.0), (8.0, 8.0, 8.0))
    scene.add_quad_light((-0.5, 5.0, -0.5), (1.0, 0.0, 0.0), (0.0, 0.0, 1.0), (2.0, 2.0, 2.0))
    scene.add_point_light((3.0, 3.0, 3.0), (20.0, 20.0, 20.0))
    scene.set_background_light((0.1, 0.2, 0.3), scale=2.0)


class TestSceneSerialization:
    """Tests for scene serialization."""

    def test_to_config(self, fresh_scene):
        _populate(fresh_scene)
        config = fresh_scene.to_config()

        assert len(config.materials) == 2
        assert config.materials[1]["phong_exp"] == 40.0
        assert len(config.spheres) == 1
        assert len(config.triangles) == 1
        assert len(config.quads) == 1
        assert [light["type"] for light in config.lights] == ["area", "quad", "point"]
        assert config.background["scale"] == 2.0

    def test_round_trip_through_dict(self, fresh_scene):
        """Test that from_dict rebuilds the same registries."""
        from src.pathcore.scene.manager import SceneManager

        _populate(fresh_scene)
        data = json.loads(json.dumps(fresh_scene.to_dict()))
        counts = (
            fresh_scene.get_material_count(),
            fresh_scene.get_sphere_count(),
            fresh_scene.get_triangle_count(),
            fresh_scene.get_light_count(),
        )

        rebuilt = SceneManager()
        rebuilt.from_dict(data)

        assert (
            rebuilt.get_material_count(),
            rebuilt.get_sphere_count(),
            rebuilt.get_triangle_count(),
            rebuilt.get_light_count(),
        ) == counts
        assert rebuilt.to_dict() == data

    def test_from_config_unknown_light_type(self, fresh_scene):
        from src.pathcore.scene.manager import SceneConfig

        config = SceneConfig(lights=[{"type": "spot", "intensity": [1.0, 1.0, 1.0]}])
        with pytest.raises(ValueError, match="Unknown light type"):
            fresh_scene.from_config(config)

    def test_from_config_replaces_scene(self, fresh_scene):
        from src.pathcore.scene.manager import SceneConfig

        _populate(fresh_scene)
        fresh_scene.from_config(SceneConfig(materials=[{"diffuse": [0.3, 0.3, 0.3]}]))
        assert fresh_scene.get_material_count() == 1
        assert fresh_scene.get_primitive_count() == 0
        assert fresh_scene.get_light_count() == 0


class TestCapacityInfo:
    """Tests for capacity information."""

    def test_capacity_methods(self):
        from src.pathcore.scene.manager import SceneManager

        assert SceneManager.get_max_spheres() > 0
        assert SceneManager.get_max_triangles() > 0
        assert SceneManager.get_max_materials() > 0
        assert SceneManager.get_max_lights() > 0
