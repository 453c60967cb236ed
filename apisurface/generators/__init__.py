"""apisurface generators — render the declared surface as Stone IDL and JSON descriptors."""

from apisurface.generators.descriptor_generator import DescriptorGenerator
from apisurface.generators.stone_generator import StoneGenerator

GENERATORS = {
    "stone": StoneGenerator,
    "descriptor": DescriptorGenerator,
}

__all__ = ["DescriptorGenerator", "GENERATORS", "StoneGenerator"]
