from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

DEFAULT_CARD_COUNT = 1
DEFAULT_INSTRUCTIONS = "Interpreta cada carta en relación con la pregunta y ofrece una visión de conjunto."


@dataclass(frozen=True)
class ReadingTypeConfig:
    code: str
    label: str
    count: int
    layout: tuple[str, ...]
    instructions: str

    def position_label(self, index: int) -> Optional[str]:
        if 0 <= index < len(self.layout):
            return self.layout[index]
        return None


def _table(*configs: ReadingTypeConfig) -> Mapping[str, ReadingTypeConfig]:
    return MappingProxyType({c.code: c for c in configs})


READING_TYPES: Mapping[str, ReadingTypeConfig] = _table(
    ReadingTypeConfig(
        code="single",
        label="Carta única",
        count=1,
        layout=(),
        instructions="Es una tirada de una sola carta: responde de forma directa y concreta a la pregunta.",
    ),
    ReadingTypeConfig(
        code="three_card",
        label="Tirada de 3 cartas",
        count=3,
        layout=("Pasado", "Presente", "Futuro"),
        instructions=(
            "Lee las cartas como pasado, presente y futuro, y explica cómo el pasado "
            "conduce al presente y hacia dónde apunta el futuro."
        ),
    ),
    ReadingTypeConfig(
        code="love",
        label="Amor",
        count=3,
        layout=(),
        instructions="Centra la interpretación en los sentimientos, la relación y el vínculo afectivo del consultante.",
    ),
    ReadingTypeConfig(
        code="career",
        label="Trabajo",
        count=3,
        layout=(),
        instructions="Centra la interpretación en la carrera profesional, el trabajo y las decisiones económicas.",
    ),
    ReadingTypeConfig(
        code="celtic_cross",
        label="Cruz Celta",
        count=10,
        layout=(
            "Situación actual",
            "Desafío",
            "Pasado",
            "Futuro",
            "Meta",
            "Inconsciente",
            "Influencia externa",
            "Esperanzas",
            "Resultado",
            "Síntesis",
        ),
        instructions=(
            "Es una Cruz Celta: analiza cada posición por separado y después relaciona "
            "la situación actual, el desafío y el resultado en una síntesis final."
        ),
    ),
    ReadingTypeConfig(
        code="yes_no",
        label="Sí o No",
        count=1,
        layout=("Respuesta",),
        instructions="Responde claramente con un sí, un no o un quizás, y justifica la respuesta con la carta.",
    ),
    ReadingTypeConfig(
        code="love_relationship",
        label="Relación de pareja",
        count=4,
        layout=("Tú", "La otra persona", "Obstáculos", "Potencial"),
        instructions=(
            "Describe los sentimientos e intenciones de ambas personas, los obstáculos "
            "de la relación y su potencial."
        ),
    ),
    ReadingTypeConfig(
        code="soulmate",
        label="Alma gemela",
        count=3,
        layout=("Conexión", "Bloqueos", "Camino a sanar"),
        instructions="Explora la conexión espiritual, lo que la bloquea y el camino para sanarla.",
    ),
    ReadingTypeConfig(
        code="life_purpose",
        label="Propósito de vida",
        count=4,
        layout=("Dones", "Misión", "Bloqueos", "Próximos pasos"),
        instructions="Habla de los dones del consultante, su misión, lo que la bloquea y los próximos pasos concretos.",
    ),
    ReadingTypeConfig(
        code="shadow_work",
        label="Sombras",
        count=3,
        layout=("Inconsciente", "Miedo", "Sanación"),
        instructions="Acompaña con delicadeza el trabajo de sombra: lo inconsciente, el miedo y el camino de sanación.",
    ),
)


def get_reading_type(code: str) -> Optional[ReadingTypeConfig]:
    return READING_TYPES.get(code)


def required_card_count(code: str) -> int:
    """Number of cards a reading type interprets; unknown types read one card."""
    config = READING_TYPES.get(code)
    return config.count if config else DEFAULT_CARD_COUNT
