"""
Minimal URDF reader producing the immutable robot description the viewer uses.

Only what the viewer needs is read: link names, the first ``<visual>`` of each
link (geometry, origin and material color) and robot-level named materials.
Joints are left to the kinematic solver.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

try:
    from lxml import etree
except ImportError as exc:  # pragma: no cover - runtime guard
    raise SystemExit("lxml is not installed. Run `pip install -e .` first.") from exc

from viz.config import DEFAULT_CONFIG, RGBATuple, Vec3Tuple


@dataclass(frozen=True)
class Box:
    size: Vec3Tuple


@dataclass(frozen=True)
class Cylinder:
    radius: float
    length: float


@dataclass(frozen=True)
class Sphere:
    radius: float


@dataclass(frozen=True)
class Mesh:
    filename: str
    scale: Vec3Tuple = (1.0, 1.0, 1.0)


Geometry = Union[Box, Cylinder, Sphere, Mesh]


@dataclass(frozen=True)
class Pose:
    """URDF ``<origin>``: translation plus roll/pitch/yaw in radians."""

    xyz: Vec3Tuple = (0.0, 0.0, 0.0)
    rpy: Vec3Tuple = (0.0, 0.0, 0.0)

    @property
    def is_identity(self) -> bool:
        return not any(self.xyz) and not any(self.rpy)


@dataclass(frozen=True)
class Visual:
    geometry: Geometry
    color: RGBATuple = DEFAULT_CONFIG.default_color
    origin: Pose = field(default_factory=Pose)


@dataclass(frozen=True)
class Link:
    name: str
    visual: Visual | None = None


@dataclass(frozen=True)
class RobotDescription:
    """Ordered, immutable list of links. Link names are unique."""

    name: str
    links: tuple[Link, ...]

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for link in self.links:
            if link.name in seen:
                raise ValueError(f"Duplicate link name '{link.name}' in robot '{self.name}'")
            seen.add(link.name)

    @property
    def link_names(self) -> list[str]:
        return [link.name for link in self.links]

    def link(self, name: str) -> Link | None:
        for link in self.links:
            if link.name == name:
                return link
        return None


def _floats(text: str | None, default: tuple[float, ...]) -> tuple[float, ...]:
    if text is None or not text.strip():
        return default
    values = tuple(float(v) for v in text.split())
    if len(values) != len(default):
        raise ValueError(f"Expected {len(default)} values, got '{text}'")
    return values


def _parse_color(material, named: dict[str, RGBATuple], default: RGBATuple) -> RGBATuple:
    if material is None:
        return default
    color = material.find("color")
    if color is not None and color.get("rgba"):
        return _floats(color.get("rgba"), default)  # type: ignore[return-value]
    return named.get(material.get("name", ""), default)


def _parse_geometry(geometry) -> Geometry | None:
    if geometry is None:
        return None
    for child in geometry:
        if not isinstance(child.tag, str):
            continue  # comments
        if child.tag == "box":
            return Box(size=_floats(child.get("size"), (0.0, 0.0, 0.0)))  # type: ignore[arg-type]
        if child.tag == "cylinder":
            return Cylinder(radius=float(child.get("radius", 0.0)), length=float(child.get("length", 0.0)))
        if child.tag == "sphere":
            return Sphere(radius=float(child.get("radius", 0.0)))
        if child.tag == "mesh":
            return Mesh(
                filename=child.get("filename", ""),
                scale=_floats(child.get("scale"), (1.0, 1.0, 1.0)),  # type: ignore[arg-type]
            )
        print(f"[Description] unsupported geometry <{child.tag}>")
        return None
    return None


def _parse_origin(origin) -> Pose:
    if origin is None:
        return Pose()
    return Pose(
        xyz=_floats(origin.get("xyz"), (0.0, 0.0, 0.0)),  # type: ignore[arg-type]
        rpy=_floats(origin.get("rpy"), (0.0, 0.0, 0.0)),  # type: ignore[arg-type]
    )


def parse_robot_description(root, default_color: RGBATuple = DEFAULT_CONFIG.default_color) -> RobotDescription:
    """Build a RobotDescription from a parsed ``<robot>`` element."""
    if root.tag != "robot":
        raise ValueError(f"Expected a <robot> root element, found <{root.tag}>")

    named: dict[str, RGBATuple] = {}
    for material in root.findall("material"):
        color = material.find("color")
        if material.get("name") and color is not None and color.get("rgba"):
            named[material.get("name")] = _floats(color.get("rgba"), default_color)  # type: ignore[assignment]

    links: list[Link] = []
    for link in root.findall("link"):
        name = link.get("name")
        if not name:
            raise ValueError("Found a <link> without a name")
        visual_elem = link.find("visual")
        visual: Visual | None = None
        if visual_elem is not None:
            geometry = _parse_geometry(visual_elem.find("geometry"))
            if geometry is not None:
                visual = Visual(
                    geometry=geometry,
                    color=_parse_color(visual_elem.find("material"), named, default_color),
                    origin=_parse_origin(visual_elem.find("origin")),
                )
        links.append(Link(name=name, visual=visual))

    return RobotDescription(name=root.get("name", ""), links=tuple(links))


def load_robot_description(
    path: str | Path, default_color: RGBATuple = DEFAULT_CONFIG.default_color
) -> RobotDescription:
    """Parse a plain URDF file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"URDF not found at {path}")
    tree = etree.parse(str(path))
    return parse_robot_description(tree.getroot(), default_color)


def parse_robot_string(text: str, default_color: RGBATuple = DEFAULT_CONFIG.default_color) -> RobotDescription:
    """Parse URDF content held in memory."""
    return parse_robot_description(etree.fromstring(text.encode("utf-8")), default_color)
