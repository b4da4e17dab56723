from dataclasses import dataclass
from typing import Optional

_FLAG_VALUES = {
    "true": True, "yes": True, "on": True, "1": True,
    "false": False, "no": False, "off": False, "0": False,
}

def _parse_flag(value: str | None) -> bool | None:
    if value is None:
        return None
    return _FLAG_VALUES.get(value.strip().lower())

@dataclass(frozen=True)
class SerializerConfig:
    """
    Formatting options applied by every serializer built from this config.

    Attributes:
        pretty_print (bool): Render output with line breaks and indentation.
        serialize_nulls (bool): Emit fields holding None instead of omitting them.
        escape_html (bool): Escape <, >, &, = and ' inside the produced JSON.
        exclude_transient (bool): Leave out dataclass fields whose name starts
                                  with an underscore, in both directions.
        complex_map_keys (bool): Write mappings whose keys are not plain values
                                 (dataclasses, models, adapted types) as a list
                                 of [key, value] pairs.
        indent (int): Number of spaces per level when pretty_print is on.
    """
    pretty_print: bool = True
    serialize_nulls: bool = True
    escape_html: bool = False
    exclude_transient: bool = True
    complex_map_keys: bool = True
    indent: int = 2

    @staticmethod
    def parse(pretty_print: str, serialize_nulls: str, escape_html: str, exclude_transient: str, complex_map_keys: str = "true") -> Optional['SerializerConfig']:
        """
        Parses string flags (true/false, yes/no, on/off, 1/0) into a SerializerConfig instance.

        Returns:
            SerializerConfig | None: A SerializerConfig instance if every flag is valid,
                                     or None otherwise.
        """
        flags = [_parse_flag(value) for value in (pretty_print, serialize_nulls, escape_html, exclude_transient, complex_map_keys)]
        if None in flags:
            return None
        return SerializerConfig(*flags)

def default_config() -> SerializerConfig:
    return SerializerConfig(
        pretty_print=True,
        serialize_nulls=True,
        escape_html=False,
        exclude_transient=True,
        complex_map_keys=True
    )
