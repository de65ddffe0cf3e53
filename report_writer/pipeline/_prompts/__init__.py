"""Load the built-in prompt sets from YAML files.

Each YAML file corresponds to a generation stage and contains named prompt
sets. Each prompt set has ``id``, ``name``, ``description``, ``system`` and
``template`` keys.

Public API:
    get_prompts(stage)            -> all prompt sets for a stage
    get_prompt_set(stage, name)   -> single prompt set dict
"""
from pathlib import Path

import yaml

_PROMPTS_DIR = Path(__file__).parent

# Expected YAML files and the prompt sets each must contain.
_EXPECTED_SCHEMA: dict[str, dict[str, list[str]]] = {
    "outline": {
        "generate_outline": ["id", "name", "description", "system", "template"],
    },
    "report": {
        "generate_report": ["id", "name", "description", "system", "template"],
    },
}

# stage_name -> dict of prompt sets (loaded once at import time)
_STAGE_DATA: dict = {}


def _load_all() -> None:
    """Load every .yaml file, keyed by filename stem. Errors are fatal."""
    for yaml_file in sorted(_PROMPTS_DIR.glob("*.yaml")):
        with open(yaml_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if not data:
            raise RuntimeError(
                f"Prompt file {yaml_file.name} is empty or failed to parse"
            )
        if not isinstance(data, dict):
            raise RuntimeError(
                f"Prompt file {yaml_file.name} must be a YAML mapping, "
                f"got {type(data).__name__}"
            )
        _STAGE_DATA[yaml_file.stem] = data


def _validate_schema() -> None:
    """Validate all expected stages and prompt sets are loaded with required keys."""
    for stage, prompt_sets in _EXPECTED_SCHEMA.items():
        if stage not in _STAGE_DATA:
            raise RuntimeError(
                f"Required prompt stage {stage!r} not loaded. "
                f"Expected file: {stage}.yaml"
            )
        stage_data = _STAGE_DATA[stage]
        for set_name, required_keys in prompt_sets.items():
            entry = stage_data.get(set_name)
            if not isinstance(entry, dict):
                raise RuntimeError(
                    f"Missing prompt set {set_name!r} in {stage}.yaml. "
                    f"Available: {list(stage_data.keys())}"
                )
            for key in required_keys:
                value = entry.get(key)
                if not isinstance(value, str) or not value.strip():
                    raise RuntimeError(
                        f"Prompt set {stage!r}/{set_name!r} key {key!r} "
                        f"must be a non-empty string"
                    )


_load_all()
_validate_schema()


def get_prompts(stage: str) -> dict:
    """Return all prompt sets for a stage.

    Example: ``get_prompts("outline")``
    """
    if stage not in _STAGE_DATA:
        raise KeyError(f"Unknown prompt stage: {stage!r}")
    return _STAGE_DATA[stage]


def get_prompt_set(stage: str, call_name: str) -> dict:
    """Return a single prompt set.

    Example: ``get_prompt_set("report", "generate_report")``
    """
    stage_data = get_prompts(stage)
    if call_name not in stage_data:
        raise KeyError(
            f"Unknown prompt set {call_name!r} in stage {stage!r}. "
            f"Available: {list(stage_data.keys())}"
        )
    return stage_data[call_name]
