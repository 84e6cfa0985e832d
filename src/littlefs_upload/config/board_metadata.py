"""
Board metadata model for Arduino boards.

This module holds the board description the pipeline works from: the fully
qualified board name, the flat build properties and the menu options with
their current selection. It can be loaded from the JSON emitted by
`arduino-cli board details --format json` or from the camelCase shape used by
the IDE extension API.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from littlefs_upload.errors import BoardDetailsError


@dataclass
class OptionValue:
    """One selectable value of a menu option."""

    value: str
    selected: bool = False


@dataclass
class ConfigOption:
    """A menu option (e.g. "flash", "eesz", "baud") and its values."""

    option: str
    values: List[OptionValue] = field(default_factory=list)

    def selected_value(self) -> Optional[str]:
        """Return the selected value, or None when nothing is selected."""
        for item in self.values:
            if item.selected:
                return item.value
        return None

    def select(self, value: str) -> None:
        """Mark `value` as the only selected value.

        Raises:
            BoardDetailsError: If the option has no such value
        """
        if not any(item.value == value for item in self.values):
            available = ", ".join(item.value for item in self.values)
            raise BoardDetailsError(
                f"Invalid value '{value}' for option '{self.option}'. "
                + f"Available values: {available or 'none'}"
            )
        for item in self.values:
            item.selected = item.value == value


@dataclass
class BoardMetadata:
    """
    Board description supplied by the Arduino tooling.

    Example arduino-cli JSON (abridged):
        {
          "fqbn": "rp2040:rp2040:rpipico",
          "build_properties": [
            "menu.flash.2097152_1048576.build.fs_start=0x10100000",
            "runtime.tools.pqt-mklittlefs.path=/home/me/.arduino15/..."
          ],
          "config_options": [
            {"option": "flash", "values": [
              {"value": "2097152_0"},
              {"value": "2097152_1048576", "selected": true}
            ]}
          ]
        }

    Usage:
        board = BoardMetadata.from_json_file(Path("details.json"))
        board.family  # "rp2040"
    """

    fqbn: str
    build_properties: Dict[str, str] = field(default_factory=dict)
    config_options: List[ConfigOption] = field(default_factory=list)

    @property
    def family(self) -> str:
        """Device family: the second colon-separated segment of the fqbn."""
        parts = self.fqbn.split(":")
        return parts[1] if len(parts) > 1 else ""

    def get_option(self, name: str) -> Optional[ConfigOption]:
        for opt in self.config_options:
            if opt.option == name:
                return opt
        return None

    def apply_fqbn_options(self, fqbn: str) -> None:
        """
        Apply menu selections encoded in an fqbn.

        Arduino fqbns may carry a fourth segment of comma-separated
        option=value pairs, e.g. "rp2040:rp2040:rpipico:flash=2097152_1048576".

        Args:
            fqbn: Fully qualified board name, with or without options

        Raises:
            BoardDetailsError: If an option or value is unknown
        """
        parts = fqbn.split(":", 3)
        if len(parts) < 4 or not parts[3]:
            return

        for pair in parts[3].split(","):
            if "=" not in pair:
                raise BoardDetailsError(f"Malformed board option '{pair}' in {fqbn}")
            name, value = pair.split("=", 1)
            opt = self.get_option(name.strip())
            if opt is None:
                raise BoardDetailsError(
                    f"Unknown board option '{name.strip()}' for {self.fqbn}"
                )
            opt.select(value.strip())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BoardMetadata":
        """
        Build metadata from a parsed board details document.

        Both arduino-cli's snake_case keys and the IDE's camelCase keys are
        accepted. Build properties may be a "key=value" list or a mapping.

        Raises:
            BoardDetailsError: If the document has no fqbn or bad sections
        """
        fqbn = data.get("fqbn") or data.get("fullyQualifiedBoardName")
        if not fqbn or not isinstance(fqbn, str):
            raise BoardDetailsError("Board details do not include an fqbn")

        raw_props = data.get("build_properties", data.get("buildProperties", {}))
        raw_options = data.get("config_options", data.get("configOptions", []))

        return cls(
            fqbn=fqbn,
            build_properties=cls._parse_build_properties(raw_props),
            config_options=cls._parse_config_options(raw_options),
        )

    @classmethod
    def from_json_file(cls, path: Path) -> "BoardMetadata":
        """Load metadata from a saved board details JSON file.

        Raises:
            BoardDetailsError: If the file is missing or not valid JSON
        """
        if not path.exists():
            raise BoardDetailsError(f"Board details file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise BoardDetailsError(f"Failed to read {path}: {e}") from e

        if not isinstance(data, dict):
            raise BoardDetailsError(f"Unexpected board details format in {path}")
        return cls.from_dict(data)

    @staticmethod
    def _parse_build_properties(raw: Any) -> Dict[str, str]:
        if isinstance(raw, dict):
            return {str(k): str(v) for k, v in raw.items() if v is not None}

        if not isinstance(raw, list):
            raise BoardDetailsError("Build properties must be a list or a mapping")

        props: Dict[str, str] = {}
        for line in raw:
            # Lines without "=" carry no value
            if not isinstance(line, str) or "=" not in line:
                continue
            key, value = line.split("=", 1)
            props[key] = value
        return props

    @staticmethod
    def _parse_config_options(raw: Any) -> List[ConfigOption]:
        if not isinstance(raw, list):
            raise BoardDetailsError("Config options must be a list")

        options = []
        for entry in raw:
            if not isinstance(entry, dict) or "option" not in entry:
                raise BoardDetailsError(f"Malformed config option: {entry!r}")
            values = [
                OptionValue(
                    value=str(item.get("value", "")),
                    selected=bool(item.get("selected", False)),
                )
                for item in entry.get("values", [])
                if isinstance(item, dict)
            ]
            options.append(ConfigOption(option=str(entry["option"]), values=values))
        return options

    def __repr__(self) -> str:
        return (
            f"BoardMetadata(fqbn='{self.fqbn}', "
            f"properties={len(self.build_properties)}, "
            f"options={len(self.config_options)})"
        )
