"""Scene manager coordinating materials, primitives and lights.

The SceneManager is the Python-side entry point for building a scene. It
writes into the three kernel-visible registries (materials, primitives,
lights) and keeps a parallel Python record of everything it added, which
is what scene serialization works from.

An area light has two halves that must stay in sync: the light in the
light registry (sampled by next-event estimation) and an emissive triangle
in the primitive registry (hit by rays). add_area_light() and
add_quad_light() always create both.

Example:
    >>> from src.pathcore.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> white = scene.add_material(diffuse=(0.73, 0.73, 0.73))
    >>> scene.add_sphere((0.0, 0.0, -3.0), 1.0, white)
    0
    >>> scene.add_quad_light((-0.5, 2.0, -0.5), (1.0, 0.0, 0.0), (0.0, 0.0, 1.0), (15.0, 15.0, 15.0))
    (0, 1)
    >>> scene.set_background_light((0.1, 0.1, 0.1))
    2
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from src.pathcore.lights.light import LightType
from src.pathcore.lights.registry import (
    MAX_LIGHTS,
    add_area_light,
    add_point_light,
    clear_lights,
    get_light_count,
    set_background_light,
)
from src.pathcore.materials.phong import (
    MAX_MATERIALS,
    LobeProbabilitiesInfo,
    add_material,
    clear_materials,
    compute_lobe_probabilities,
    get_material_count,
)
from src.pathcore.scene.intersection import (
    MAX_SPHERES,
    MAX_TRIANGLES,
    SurfaceKind,
    add_sphere,
    add_triangle,
    clear_scene,
    get_sphere_count,
    get_triangle_count,
)

logger = logging.getLogger(__name__)

Vec3 = tuple[float, float, float]


@dataclass
class MaterialInfo:
    """A registered material."""

    material_id: int
    diffuse: Vec3
    specular: Vec3
    phong_exp: float


@dataclass
class SphereInfo:
    sphere_index: int
    center: Vec3
    radius: float
    material_id: int


@dataclass
class TriangleInfo:
    triangle_index: int
    vertices: tuple[Vec3, Vec3, Vec3]
    material_id: int


@dataclass
class QuadInfo:
    """A quad, stored as two triangles sharing the corner + u + v diagonal."""

    triangle_indices: tuple[int, int]
    corner: Vec3
    edge_u: Vec3
    edge_v: Vec3
    material_id: int


@dataclass
class LightInfo:
    """A light added through the manager.

    Attributes:
        light_ids: Light registry ids created for this entry (two for a
            quad light, one otherwise).
        light_type: LightType of the registry entries.
        params: The parameters as provided, in serializable form.
    """

    light_ids: tuple[int, ...]
    light_type: LightType
    params: dict[str, Any]


@dataclass
class SceneConfig:
    """Serializable scene description.

    Attributes:
        materials: Material parameter dicts, in material-id order.
        spheres: Sphere dicts (center, radius, material_id).
        triangles: Triangle dicts (vertices, material_id).
        quads: Quad dicts (corner, edge_u, edge_v, material_id).
        lights: Light dicts with a "type" of "area", "quad" or "point".
        background: Background light dict, or None when unset.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)
    triangles: list[dict[str, Any]] = field(default_factory=list)
    quads: list[dict[str, Any]] = field(default_factory=list)
    lights: list[dict[str, Any]] = field(default_factory=list)
    background: dict[str, Any] | None = None


def _vec3(values: Any) -> Vec3:
    return (float(values[0]), float(values[1]), float(values[2]))


class SceneManager:
    """High-level scene construction API.

    Creating a SceneManager clears every registry, so there is exactly one
    live scene at a time.

    Attributes:
        materials: Registered materials, indexed by material id.
        spheres: Spheres in insertion order.
        triangles: Triangles added directly (not as part of a quad or light).
        quads: Quads in insertion order.
        lights: Area, quad and point lights in insertion order.
        background: Parameters of the background light, or None.
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.triangles: list[TriangleInfo] = []
        self.quads: list[QuadInfo] = []
        self.lights: list[LightInfo] = []
        self.background: dict[str, Any] | None = None
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene()
        clear_materials()
        clear_lights()
        self.materials.clear()
        self.spheres.clear()
        self.triangles.clear()
        self.quads.clear()
        self.lights.clear()
        self.background = None

    def clear(self) -> None:
        """Clear all materials, primitives and lights."""
        self._clear_all()
        logger.debug("Scene cleared")

    def _check_material_id(self, material_id: int) -> None:
        if material_id < 0 or material_id >= get_material_count():
            raise ValueError(f"Invalid material_id: {material_id}")

    # =========================================================================
    # Materials
    # =========================================================================

    def add_material(
        self,
        diffuse: Vec3,
        specular: Vec3 = (0.0, 0.0, 0.0),
        phong_exp: float = 1.0,
    ) -> int:
        """Add a diffuse/glossy material.

        Args:
            diffuse: Diffuse albedo as (R, G, B), each in [0, 1].
            specular: Specular albedo as (R, G, B), each in [0, 1].
            phong_exp: Glossiness exponent (>= 0).

        Returns:
            The material id.

        Raises:
            ValueError: If a parameter is out of range.
            RuntimeError: If the maximum number of materials is exceeded.
        """
        material_id = add_material(diffuse, specular, phong_exp)
        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                diffuse=_vec3(diffuse),
                specular=_vec3(specular),
                phong_exp=float(phong_exp),
            )
        )
        return material_id

    def get_material_count(self) -> int:
        return get_material_count()

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_lobe_probabilities(self, material_id: int) -> LobeProbabilitiesInfo:
        """Lobe selection probabilities of a registered material.

        Raises:
            ValueError: If the material id is invalid.
        """
        self._check_material_id(material_id)
        info = self.materials[material_id]
        return compute_lobe_probabilities(info.diffuse, info.specular)

    # =========================================================================
    # Primitives
    # =========================================================================

    def add_sphere(self, center: Vec3, radius: float, material_id: int) -> int:
        """Add a sphere with an existing material.

        Returns:
            The sphere index.

        Raises:
            ValueError: If the material id is invalid or the radius is not
                positive.
            RuntimeError: If the maximum number of spheres is exceeded.
        """
        self._check_material_id(material_id)
        sphere_index = add_sphere(center, radius, SurfaceKind.MATERIAL, material_id)
        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=_vec3(center),
                radius=float(radius),
                material_id=material_id,
            )
        )
        return sphere_index

    def add_triangle(self, v0: Vec3, v1: Vec3, v2: Vec3, material_id: int) -> int:
        """Add a triangle with an existing material.

        The winding order defines the front face (right-hand rule).

        Raises:
            ValueError: If the material id is invalid.
            RuntimeError: If the maximum number of triangles is exceeded.
        """
        self._check_material_id(material_id)
        triangle_index = add_triangle(v0, v1, v2, SurfaceKind.MATERIAL, material_id)
        self.triangles.append(
            TriangleInfo(
                triangle_index=triangle_index,
                vertices=(_vec3(v0), _vec3(v1), _vec3(v2)),
                material_id=material_id,
            )
        )
        return triangle_index

    def add_quad(self, corner: Vec3, edge_u: Vec3, edge_v: Vec3, material_id: int) -> tuple[int, int]:
        """Add a parallelogram with corners Q, Q+u, Q+v, Q+u+v.

        The front face is the side normalize(u x v) points to.

        Returns:
            The indices of the two triangles.

        Raises:
            ValueError: If the material id is invalid.
            RuntimeError: If the maximum number of triangles is exceeded.
        """
        self._check_material_id(material_id)
        q, a, b, c = _quad_corners(corner, edge_u, edge_v)
        first = add_triangle(q, a, c, SurfaceKind.MATERIAL, material_id)
        second = add_triangle(q, c, b, SurfaceKind.MATERIAL, material_id)
        self.quads.append(
            QuadInfo(
                triangle_indices=(first, second),
                corner=_vec3(corner),
                edge_u=_vec3(edge_u),
                edge_v=_vec3(edge_v),
                material_id=material_id,
            )
        )
        return first, second

    def get_sphere_count(self) -> int:
        return get_sphere_count()

    def get_triangle_count(self) -> int:
        """Number of triangles, including quad halves and light geometry."""
        return get_triangle_count()

    def get_primitive_count(self) -> int:
        return self.get_sphere_count() + self.get_triangle_count()

    # =========================================================================
    # Lights
    # =========================================================================

    @staticmethod
    def _check_emitter_capacity(count: int) -> None:
        """Raise if count more emissive triangles do not fit in both stores."""
        if get_light_count() + count > MAX_LIGHTS:
            raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
        if get_triangle_count() + count > MAX_TRIANGLES:
            raise RuntimeError(f"Maximum number of triangles ({MAX_TRIANGLES}) exceeded")

    def _add_emissive_triangle(self, p0: Vec3, p1: Vec3, p2: Vec3, intensity: Vec3) -> int:
        light_id = add_area_light(p0, p1, p2, intensity)
        add_triangle(p0, p1, p2, SurfaceKind.LIGHT, light_id)
        return light_id

    def add_area_light(self, p0: Vec3, p1: Vec3, p2: Vec3, intensity: Vec3) -> int:
        """Add a one-sided triangular area light and its emissive geometry.

        The light emits toward normalize((p1 - p0) x (p2 - p0)).

        Returns:
            The light id.

        Raises:
            ValueError: If the triangle is degenerate or the intensity invalid.
            RuntimeError: If a light or triangle capacity is exceeded.
        """
        self._check_emitter_capacity(1)
        light_id = self._add_emissive_triangle(p0, p1, p2, intensity)
        self.lights.append(
            LightInfo(
                light_ids=(light_id,),
                light_type=LightType.AREA,
                params={
                    "type": "area",
                    "vertices": [list(_vec3(p)) for p in (p0, p1, p2)],
                    "intensity": list(_vec3(intensity)),
                },
            )
        )
        logger.debug(f"Added area light {light_id}")
        return light_id

    def add_quad_light(self, corner: Vec3, edge_u: Vec3, edge_v: Vec3, intensity: Vec3) -> tuple[int, int]:
        """Add a parallelogram area light as two triangle lights.

        The light emits toward normalize(edge_u x edge_v).

        Returns:
            The light ids of the two halves.

        Raises:
            ValueError: If the quad is degenerate or the intensity invalid.
            RuntimeError: If a light or triangle capacity is exceeded.
        """
        self._check_emitter_capacity(2)
        q, a, b, c = _quad_corners(corner, edge_u, edge_v)
        first = self._add_emissive_triangle(q, a, c, intensity)
        second = self._add_emissive_triangle(q, c, b, intensity)
        self.lights.append(
            LightInfo(
                light_ids=(first, second),
                light_type=LightType.AREA,
                params={
                    "type": "quad",
                    "corner": list(_vec3(corner)),
                    "edge_u": list(_vec3(edge_u)),
                    "edge_v": list(_vec3(edge_v)),
                    "intensity": list(_vec3(intensity)),
                },
            )
        )
        logger.debug(f"Added quad light ({first}, {second})")
        return first, second

    def add_point_light(self, position: Vec3, intensity: Vec3) -> int:
        """Add an isotropic point light (sampled only, never hit by rays)."""
        light_id = add_point_light(position, intensity)
        self.lights.append(
            LightInfo(
                light_ids=(light_id,),
                light_type=LightType.POINT,
                params={
                    "type": "point",
                    "position": list(_vec3(position)),
                    "intensity": list(_vec3(intensity)),
                },
            )
        )
        return light_id

    def set_background_light(
        self,
        intensity: Vec3,
        scale: float = 1.0,
        sample_directly: bool = False,
    ) -> int:
        """Set the uniform background light. Replaces any previous one.

        Returns:
            The light id of the background.
        """
        light_id = set_background_light(intensity, scale, sample_directly)
        self.background = {
            "intensity": list(_vec3(intensity)),
            "scale": float(scale),
            "sample_directly": bool(sample_directly),
        }
        return light_id

    def get_light_count(self) -> int:
        """Number of light registry entries (a quad light counts twice)."""
        return get_light_count()

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        config = SceneConfig()
        for mat in self.materials:
            config.materials.append(
                {
                    "diffuse": list(mat.diffuse),
                    "specular": list(mat.specular),
                    "phong_exp": mat.phong_exp,
                }
            )
        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )
        for tri in self.triangles:
            config.triangles.append(
                {
                    "vertices": [list(v) for v in tri.vertices],
                    "material_id": tri.material_id,
                }
            )
        for quad in self.quads:
            config.quads.append(
                {
                    "corner": list(quad.corner),
                    "edge_u": list(quad.edge_u),
                    "edge_v": list(quad.edge_v),
                    "material_id": quad.material_id,
                }
            )
        for light in self.lights:
            config.lights.append(dict(light.params))
        if self.background is not None:
            config.background = dict(self.background)
        return config

    def from_config(self, config: SceneConfig) -> None:
        """Replace the current scene with a configuration.

        Raises:
            ValueError: If the configuration contains an unknown light type
                or invalid data.
        """
        self.clear()

        for mat in config.materials:
            self.add_material(
                _vec3(mat.get("diffuse", [0.5, 0.5, 0.5])),
                _vec3(mat.get("specular", [0.0, 0.0, 0.0])),
                float(mat.get("phong_exp", 1.0)),
            )
        for sphere in config.spheres:
            self.add_sphere(
                _vec3(sphere["center"]),
                float(sphere["radius"]),
                int(sphere.get("material_id", 0)),
            )
        for tri in config.triangles:
            v0, v1, v2 = tri["vertices"]
            self.add_triangle(_vec3(v0), _vec3(v1), _vec3(v2), int(tri.get("material_id", 0)))
        for quad in config.quads:
            self.add_quad(
                _vec3(quad["corner"]),
                _vec3(quad["edge_u"]),
                _vec3(quad["edge_v"]),
                int(quad.get("material_id", 0)),
            )
        for light in config.lights:
            light_type = light.get("type", "").lower()
            intensity = _vec3(light["intensity"])
            if light_type == "area":
                p0, p1, p2 = light["vertices"]
                self.add_area_light(_vec3(p0), _vec3(p1), _vec3(p2), intensity)
            elif light_type == "quad":
                self.add_quad_light(
                    _vec3(light["corner"]),
                    _vec3(light["edge_u"]),
                    _vec3(light["edge_v"]),
                    intensity,
                )
            elif light_type == "point":
                self.add_point_light(_vec3(light["position"]), intensity)
            else:
                raise ValueError(f"Unknown light type: {light_type}")
        if config.background is not None:
            self.set_background_light(
                _vec3(config.background["intensity"]),
                float(config.background.get("scale", 1.0)),
                bool(config.background.get("sample_directly", False)),
            )

        logger.info(
            f"Loaded scene: {len(self.materials)} materials, "
            f"{self.get_primitive_count()} primitives, {self.get_light_count()} lights"
        )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene as a JSON-serializable dictionary."""
        config = self.to_config()
        return {
            "materials": config.materials,
            "spheres": config.spheres,
            "triangles": config.triangles,
            "quads": config.quads,
            "lights": config.lights,
            "background": config.background,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        config = SceneConfig(
            materials=data.get("materials", []),
            spheres=data.get("spheres", []),
            triangles=data.get("triangles", []),
            quads=data.get("quads", []),
            lights=data.get("lights", []),
            background=data.get("background"),
        )
        self.from_config(config)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_triangles() -> int:
        return MAX_TRIANGLES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS

    @staticmethod
    def get_max_lights() -> int:
        return MAX_LIGHTS


def _quad_corners(corner: Vec3, edge_u: Vec3, edge_v: Vec3) -> tuple[Vec3, Vec3, Vec3, Vec3]:
    """Corners (Q, Q+u, Q+v, Q+u+v) of a parallelogram."""
    q = np.asarray(corner, dtype=np.float64)
    u = np.asarray(edge_u, dtype=np.float64)
    v = np.asarray(edge_v, dtype=np.float64)
    return _vec3(q), _vec3(q + u), _vec3(q + v), _vec3(q + u + v)
