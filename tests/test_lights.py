"""Unit tests for light sources and the light registry.

Tests cover:
- Area light geometry and validation
- Area light sampling and radiance (one-sided emission)
- Background light sampling, radiance and the single-background rule
- Point light sampling (delta light)
- Registry bookkeeping and kernel-side dispatch
"""

import math

import numpy as np
import pytest
import taichi as ti

# Downward-facing triangle at y = 2 with area 2
LIGHT_P0 = (-1.0, 2.0, -1.0)
LIGHT_P1 = (1.0, 2.0, 1.0)
LIGHT_P2 = (-1.0, 2.0, 1.0)


class TestAreaLightGeometry:
    """Tests for the Python-side area light precomputation."""

    def test_unit_right_triangle(self):
        from src.pathcore.lights.area import compute_area_light_geometry

        geometry = compute_area_light_geometry((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))
        assert geometry.inv_area == pytest.approx(2.0)
        assert geometry.normal == pytest.approx((0.0, 0.0, 1.0))
        assert geometry.e1 == pytest.approx((1.0, 0.0, 0.0))
        assert geometry.e2 == pytest.approx((0.0, 1.0, 0.0))

    def test_frame_is_orthonormal(self):
        from src.pathcore.lights.area import compute_area_light_geometry

        geometry = compute_area_light_geometry(LIGHT_P0, LIGHT_P1, LIGHT_P2)
        x = np.array(geometry.frame_x)
        y = np.array(geometry.frame_y)
        n = np.array(geometry.normal)
        assert np.allclose(n, [0.0, -1.0, 0.0])
        assert abs(np.dot(x, y)) < 1e-9
        assert abs(np.dot(x, n)) < 1e-9
        assert np.allclose(np.cross(x, y), n)

    def test_degenerate_triangle_rejected(self):
        from src.pathcore.lights.area import compute_area_light_geometry

        with pytest.raises(ValueError, match="Degenerate"):
            compute_area_light_geometry((0.0, 0.0, 0.0), (1.0, 1.0, 1.0), (2.0, 2.0, 2.0))


class TestAreaLight:
    """Tests for area light sampling and radiance through the registry."""

    def test_illuminate_pdf_converts_area_to_solid_angle(self):
        """Test pdf_w = inv_area * dist^2 / cos_light."""
        from src.pathcore.lights.registry import add_area_light, illuminate, vec3

        light_id = add_area_light(LIGHT_P0, LIGHT_P1, LIGHT_P2, (4.0, 5.0, 6.0))

        direction = ti.field(dtype=ti.math.vec3, shape=())
        distance = ti.field(dtype=ti.f32, shape=())
        pdf = ti.field(dtype=ti.f32, shape=())
        intensity = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(lid: ti.i32):
            illum = illuminate(lid, vec3(0.2, 0.0, 0.1), 0.3, 0.6)
            direction[None] = illum.dir_to_light
            distance[None] = illum.dist_to_light
            pdf[None] = illum.pdf_w
            intensity[None] = illum.intensity

        test_kernel(light_id)
        d = direction[None].to_numpy()
        dist = distance[None]
        assert abs(np.linalg.norm(d) - 1.0) < 1e-5
        # The sampled point lies on the light plane
        assert abs(0.0 + d[1] * dist - 2.0) < 1e-4

        cos_light = d[1]  # dot((0, -1, 0), -d)
        expected_pdf = 0.5 * dist * dist / cos_light
        assert abs(pdf[None] - expected_pdf) < 1e-3 * expected_pdf
        assert np.allclose(intensity[None].to_numpy(), [4.0, 5.0, 6.0])

    def test_sampled_points_stay_on_triangle(self):
        from src.pathcore.lights.registry import add_area_light, illuminate, vec3

        light_id = add_area_light(LIGHT_P0, LIGHT_P1, LIGHT_P2, (1.0, 1.0, 1.0))
        points = ti.Vector.field(3, dtype=ti.f32, shape=(8, 8))

        @ti.kernel
        def test_kernel(lid: ti.i32):
            for i, j in points:
                origin = vec3(0.0, 0.0, 0.0)
                u1 = (ti.cast(i, ti.f32) + 0.5) / 8.0
                u2 = (ti.cast(j, ti.f32) + 0.5) / 8.0
                illum = illuminate(lid, origin, u1, u2)
                points[i, j] = origin + illum.dir_to_light * illum.dist_to_light

        test_kernel(light_id)
        p = points.to_numpy().reshape(-1, 3)
        assert np.allclose(p[:, 1], 2.0, atol=1e-4)
        # Triangle (-1,-1), (1,1), (-1,1) in xz: x <= z, both in [-1, 1]
        assert np.all(p[:, 0] >= -1.0 - 1e-4)
        assert np.all(p[:, 2] <= 1.0 + 1e-4)
        assert np.all(p[:, 0] <= p[:, 2] + 1e-4)

    def test_illuminate_from_behind_returns_no_light(self):
        from src.pathcore.lights.registry import add_area_light, illuminate, vec3

        light_id = add_area_light(LIGHT_P0, LIGHT_P1, LIGHT_P2, (1.0, 1.0, 1.0))
        pdf = ti.field(dtype=ti.f32, shape=())
        intensity = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(lid: ti.i32):
            illum = illuminate(lid, vec3(0.0, 5.0, 0.0), 0.3, 0.6)
            pdf[None] = illum.pdf_w
            intensity[None] = illum.intensity

        test_kernel(light_id)
        assert math.isinf(pdf[None]) and pdf[None] < 0.0
        assert np.allclose(intensity[None].to_numpy(), 0.0)

    def test_radiance_is_one_sided(self):
        """Test that only rays hitting the emitting side see radiance."""
        from src.pathcore.lights.registry import add_area_light, get_radiance, vec3

        light_id = add_area_light(LIGHT_P0, LIGHT_P1, LIGHT_P2, (3.0, 3.0, 3.0))
        front = ti.field(dtype=ti.math.vec3, shape=())
        front_pdf = ti.field(dtype=ti.f32, shape=())
        back = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(lid: ti.i32):
            hit_point = vec3(0.0, 2.0, 0.5)
            r = get_radiance(lid, vec3(0.0, 1.0, 0.0), hit_point)
            front[None] = r.intensity
            front_pdf[None] = r.pdf
            back[None] = get_radiance(lid, vec3(0.0, -1.0, 0.0), hit_point).intensity

        test_kernel(light_id)
        assert np.allclose(front[None].to_numpy(), 3.0)
        assert abs(front_pdf[None] - 0.5) < 1e-6
        assert np.allclose(back[None].to_numpy(), 0.0)

    def test_rejects_negative_intensity(self):
        from src.pathcore.lights.registry import add_area_light

        with pytest.raises(ValueError):
            add_area_light(LIGHT_P0, LIGHT_P1, LIGHT_P2, (1.0, -1.0, 1.0))

    def test_area_light_is_sampled_not_delta(self):
        from src.pathcore.lights.registry import add_area_light, is_delta, is_sampled

        light_id = add_area_light(LIGHT_P0, LIGHT_P1, LIGHT_P2, (1.0, 1.0, 1.0))
        flags = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel(lid: ti.i32):
            flags[0] = is_delta(lid)
            flags[1] = is_sampled(lid)

        test_kernel(light_id)
        assert flags[0] == 0
        assert flags[1] == 1


class TestBackgroundLight:
    """Tests for the uniform environment light."""

    def test_illuminate_uniform_sphere(self):
        from src.pathcore.lights.background import BACKGROUND_DISTANCE
        from src.pathcore.lights.registry import illuminate, set_background_light, vec3

        light_id = set_background_light((0.5, 0.25, 1.0), scale=2.0, sample_directly=True)
        direction = ti.field(dtype=ti.math.vec3, shape=())
        distance = ti.field(dtype=ti.f32, shape=())
        pdf = ti.field(dtype=ti.f32, shape=())
        intensity = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(lid: ti.i32):
            illum = illuminate(lid, vec3(1.0, 2.0, 3.0), 0.25, 0.75)
            direction[None] = illum.dir_to_light
            distance[None] = illum.dist_to_light
            pdf[None] = illum.pdf_w
            intensity[None] = illum.intensity

        test_kernel(light_id)
        assert abs(np.linalg.norm(direction[None].to_numpy()) - 1.0) < 1e-5
        assert distance[None] == pytest.approx(BACKGROUND_DISTANCE, rel=1e-6)
        assert abs(pdf[None] - 1.0 / (4.0 * math.pi)) < 1e-7
        assert np.allclose(intensity[None].to_numpy(), [1.0, 0.5, 2.0])

    def test_radiance_is_scaled_intensity(self):
        from src.pathcore.lights.registry import get_radiance, set_background_light, vec3

        light_id = set_background_light((0.2, 0.4, 0.6), scale=0.5)
        intensity = ti.field(dtype=ti.math.vec3, shape=())
        pdf = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(lid: ti.i32):
            r = get_radiance(lid, vec3(0.0, 0.0, -1.0), vec3(0.0, 0.0, 0.0))
            intensity[None] = r.intensity
            pdf[None] = r.pdf

        test_kernel(light_id)
        assert np.allclose(intensity[None].to_numpy(), [0.1, 0.2, 0.3], atol=1e-6)
        assert abs(pdf[None] - 1.0 / (4.0 * math.pi)) < 1e-7

    def test_setting_background_twice_reuses_slot(self):
        from src.pathcore.lights.registry import (
            add_point_light,
            get_background_light_id,
            get_light_count,
            set_background_light,
        )

        first = set_background_light((1.0, 1.0, 1.0))
        add_point_light((0.0, 1.0, 0.0), (1.0, 1.0, 1.0))
        second = set_background_light((0.5, 0.5, 0.5))

        assert first == second
        assert get_background_light_id() == first
        assert get_light_count() == 2

    def test_sample_directly_flag(self):
        from src.pathcore.lights.registry import is_sampled, set_background_light

        flag = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(lid: ti.i32):
            flag[None] = is_sampled(lid)

        light_id = set_background_light((1.0, 1.0, 1.0))
        test_kernel(light_id)
        assert flag[None] == 0

        set_background_light((1.0, 1.0, 1.0), sample_directly=True)
        test_kernel(light_id)
        assert flag[None] == 1

    @pytest.mark.parametrize("scale", [0.0, -1.0, float("inf")])
    def test_rejects_invalid_scale(self, scale):
        from src.pathcore.lights.registry import set_background_light

        with pytest.raises(ValueError, match="scale"):
            set_background_light((1.0, 1.0, 1.0), scale=scale)


class TestPointLight:
    """Tests for the point light."""

    def test_illuminate_pdf_is_distance_squared(self):
        from src.pathcore.lights.registry import add_point_light, illuminate, vec3

        light_id = add_point_light((0.0, 3.0, 4.0), (10.0, 10.0, 10.0))
        direction = ti.field(dtype=ti.math.vec3, shape=())
        distance = ti.field(dtype=ti.f32, shape=())
        pdf = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(lid: ti.i32):
            illum = illuminate(lid, vec3(0.0, 0.0, 0.0), 0.5, 0.5)
            direction[None] = illum.dir_to_light
            distance[None] = illum.dist_to_light
            pdf[None] = illum.pdf_w

        test_kernel(light_id)
        assert np.allclose(direction[None].to_numpy(), [0.0, 0.6, 0.8], atol=1e-6)
        assert abs(distance[None] - 5.0) < 1e-5
        assert abs(pdf[None] - 25.0) < 1e-4

    def test_point_light_is_delta_and_has_no_radiance(self):
        from src.pathcore.lights.registry import add_point_light, get_radiance, is_delta, vec3

        light_id = add_point_light((0.0, 3.0, 0.0), (10.0, 10.0, 10.0))
        delta = ti.field(dtype=ti.i32, shape=())
        radiance = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(lid: ti.i32):
            delta[None] = is_delta(lid)
            radiance[None] = get_radiance(lid, vec3(0.0, 1.0, 0.0), vec3(0.0, 3.0, 0.0)).intensity

        test_kernel(light_id)
        assert delta[None] == 1
        assert np.allclose(radiance[None].to_numpy(), 0.0)


class TestLightRegistry:
    """Tests for registry bookkeeping."""

    def test_light_types_and_ids(self):
        from src.pathcore.lights.light import LightType
        from src.pathcore.lights.registry import (
            add_area_light,
            add_point_light,
            get_light_count,
            get_light_type,
            set_background_light,
        )

        area = add_area_light(LIGHT_P0, LIGHT_P1, LIGHT_P2, (1.0, 1.0, 1.0))
        point = add_point_light((0.0, 1.0, 0.0), (1.0, 1.0, 1.0))
        background = set_background_light((0.1, 0.1, 0.1))

        assert (area, point, background) == (0, 1, 2)
        assert get_light_count() == 3
        assert get_light_type(area) == LightType.AREA
        assert get_light_type(point) == LightType.POINT
        assert get_light_type(background) == LightType.BACKGROUND

    def test_invalid_light_id(self):
        from src.pathcore.lights.registry import get_light_type

        with pytest.raises(ValueError, match="Invalid light ID"):
            get_light_type(0)

    def test_no_background_by_default(self):
        from src.pathcore.lights.registry import get_background_light, get_background_light_id

        result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = get_background_light()

        test_kernel()
        assert get_background_light_id() == -1
        assert result[None] == -1

    def test_clear_lights_removes_background(self):
        from src.pathcore.lights.registry import (
            clear_lights,
            get_background_light_id,
            get_light_count,
            set_background_light,
        )

        set_background_light((1.0, 1.0, 1.0))
        clear_lights()
        assert get_light_count() == 0
        assert get_background_light_id() == -1

    def test_clear_lights_resets_background_slot(self):
        """Test that a background set after clearing takes a fresh slot."""
        from src.pathcore.lights import registry

        registry.add_point_light((0.0, 1.0, 0.0), (1.0, 1.0, 1.0))
        assert registry.set_background_light((1.0, 1.0, 1.0)) == 1
        registry.clear_lights()

        assert registry.background_index[None] == 0
        assert registry.get_background_light_id() == -1
        assert registry.set_background_light((0.5, 0.5, 0.5)) == 0
        assert registry.get_light_count() == 1
