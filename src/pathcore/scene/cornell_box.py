"""Cornell box test scene.

The classic global-illumination test scene: an open-fronted box of
555-unit walls (red left, green right, white elsewhere) lit by a
rectangular area light just below the ceiling. Two spheres sit on the
floor: a matte white one and a glossy one that exercises the specular
lobe.

Every surface is one-sided, so each wall's edge vectors are ordered to make
u x v point into the box, and the light's to make it emit downward.

Example:
    >>> from src.pathcore.scene.cornell_box import create_cornell_box_scene
    >>> from src.pathcore.camera.pinhole import setup_camera
    >>> scene, camera, light_ids = create_cornell_box_scene()
    >>> setup_camera(camera)
"""

from dataclasses import dataclass

from src.pathcore.camera.pinhole import PinholeCamera
from src.pathcore.scene.manager import SceneManager


@dataclass
class CornellBoxParams:
    """Tunable parameters of the Cornell box.

    Attributes:
        light_intensity: Scalar radiance of the ceiling light.
        light_color: RGB tint of the light, multiplied by light_intensity.
        left_wall_color: Diffuse albedo of the left wall.
        right_wall_color: Diffuse albedo of the right wall.
        back_wall_color: Diffuse albedo of the back wall, floor and ceiling.
        glossy_exponent: Phong exponent of the glossy sphere.
        background_intensity: Uniform background radiance seen through the
            open front, or None for a black background.
    """

    light_intensity: float = 15.0
    light_color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    left_wall_color: tuple[float, float, float] = (0.65, 0.05, 0.05)
    right_wall_color: tuple[float, float, float] = (0.12, 0.45, 0.15)
    back_wall_color: tuple[float, float, float] = (0.73, 0.73, 0.73)
    glossy_exponent: float = 60.0
    background_intensity: tuple[float, float, float] | None = None


BOX_SIZE = 555.0

# Classic light footprint
LIGHT_WIDTH = 130.0
LIGHT_DEPTH = 105.0

DIFFUSE_SPHERE_ALBEDO = (0.73, 0.73, 0.73)
GLOSSY_SPHERE_DIFFUSE = (0.05, 0.05, 0.05)
GLOSSY_SPHERE_SPECULAR = (0.8, 0.8, 0.8)
SPHERE_RADIUS = 90.0


def get_light_quad_info(box_size: float = BOX_SIZE) -> dict[str, tuple[float, float, float]]:
    """Geometry of the ceiling light quad.

    Returns:
        A dictionary with 'corner', 'edge_u', 'edge_v' and 'center'.
    """
    x0 = (box_size - LIGHT_WIDTH) / 2.0
    z0 = (box_size - LIGHT_DEPTH) / 2.0
    # Just below the ceiling
    y = box_size - 1.0
    return {
        "corner": (x0, y, z0),
        "edge_u": (LIGHT_WIDTH, 0.0, 0.0),
        "edge_v": (0.0, 0.0, LIGHT_DEPTH),
        "center": (x0 + LIGHT_WIDTH / 2.0, y, z0 + LIGHT_DEPTH / 2.0),
    }


def create_cornell_box_scene(
    box_size: float = BOX_SIZE,
    params: CornellBoxParams | None = None,
) -> tuple[SceneManager, PinholeCamera, tuple[int, int]]:
    """Build the Cornell box.

    The box spans [0, box_size] on every axis with y up; the camera sits in
    front of the open z = 0 side looking toward +z.

    Args:
        box_size: Edge length of the box.
        params: Light and wall settings; defaults to CornellBoxParams().

    Returns:
        A tuple (scene, camera, light_ids) where light_ids are the two
        triangle lights that make up the ceiling light.
    """
    if params is None:
        params = CornellBoxParams()

    s = box_size
    scene = SceneManager()

    left_mat = scene.add_material(diffuse=params.left_wall_color)
    right_mat = scene.add_material(diffuse=params.right_wall_color)
    white_mat = scene.add_material(diffuse=params.back_wall_color)
    diffuse_mat = scene.add_material(diffuse=DIFFUSE_SPHERE_ALBEDO)
    glossy_mat = scene.add_material(
        diffuse=GLOSSY_SPHERE_DIFFUSE,
        specular=GLOSSY_SPHERE_SPECULAR,
        phong_exp=params.glossy_exponent,
    )

    # The camera looks down +z with +x to its left
    # Left wall, x = s, normal -x
    scene.add_quad((s, 0.0, s), (0.0, s, 0.0), (0.0, 0.0, -s), left_mat)
    # Right wall, x = 0, normal +x
    scene.add_quad((0.0, 0.0, 0.0), (0.0, s, 0.0), (0.0, 0.0, s), right_mat)
    # Back wall, z = s, normal -z
    scene.add_quad((0.0, 0.0, s), (0.0, s, 0.0), (s, 0.0, 0.0), white_mat)
    # Floor, y = 0, normal +y
    scene.add_quad((0.0, 0.0, 0.0), (0.0, 0.0, s), (s, 0.0, 0.0), white_mat)
    # Ceiling, y = s, normal -y
    scene.add_quad((0.0, s, 0.0), (s, 0.0, 0.0), (0.0, 0.0, s), white_mat)

    light = get_light_quad_info(box_size)
    intensity = (
        params.light_color[0] * params.light_intensity,
        params.light_color[1] * params.light_intensity,
        params.light_color[2] * params.light_intensity,
    )
    light_ids = scene.add_quad_light(light["corner"], light["edge_u"], light["edge_v"], intensity)

    scene.add_sphere((s * 0.3, SPHERE_RADIUS, s * 0.4), SPHERE_RADIUS, diffuse_mat)
    scene.add_sphere((s * 0.7, SPHERE_RADIUS, s * 0.6), SPHERE_RADIUS, glossy_mat)

    if params.background_intensity is not None:
        scene.set_background_light(params.background_intensity)

    camera = PinholeCamera(
        lookfrom=(s / 2.0, s / 2.0, -800.0),
        lookat=(s / 2.0, s / 2.0, s / 2.0),
        vup=(0.0, 1.0, 0.0),
        vfov=40.0,
        aspect_ratio=1.0,
    )

    return scene, camera, light_ids


def get_cornell_box_bounds(box_size: float = BOX_SIZE) -> dict[str, tuple[float, float, float]]:
    return {
        "min": (0.0, 0.0, 0.0),
        "max": (box_size, box_size, box_size),
        "center": (box_size / 2.0, box_size / 2.0, box_size / 2.0),
    }
