"""md5mesh: parser and toolkit for id Tech 4 ``.md5mesh`` skeletal meshes."""

__version__ = "0.1.0"

from md5mesh.errors import Md5MeshError, ParseError, ValidationError  # noqa: E402
from md5mesh.models import Header, Joint, Mesh, Scene, Tri, Vert, Weight  # noqa: E402
from md5mesh.parser import load_md5mesh, parse, parse_md5mesh  # noqa: E402

__all__ = [
    "Header",
    "Joint",
    "Md5MeshError",
    "Mesh",
    "ParseError",
    "Scene",
    "Tri",
    "ValidationError",
    "Vert",
    "Weight",
    "__version__",
    "load_md5mesh",
    "parse",
    "parse_md5mesh",
]
