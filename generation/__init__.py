from generation.base import Generator
from generation.context import fetch_context
from generation.keywords import tag_text
from generation.llm import LLMGenerator
from generation.template import TemplateGenerator

GENERATORS: dict[str, type[Generator]] = {
    "claude": LLMGenerator,
    "template": TemplateGenerator,
}


def build_generator(backend: str) -> Generator:
    """Instantiate the generator configured by ``backend``."""
    try:
        generator_cls = GENERATORS[backend]
    except KeyError:
        raise ValueError(f"Unknown generator backend {backend!r}; expected one of {sorted(GENERATORS)}") from None
    return generator_cls()


__all__ = [
    "GENERATORS",
    "Generator",
    "LLMGenerator",
    "TemplateGenerator",
    "build_generator",
    "fetch_context",
    "tag_text",
]
