"""
Configuration for CFM.

Defaults used by the mapper and the backends, plus the GenerationOptions
value passed uniformly to every generator in a batch.

Options can be loaded from a YAML document whose keys are the
GenerationOptions field names:

    include_conditional_logic: false
    output_format: YAML
    default_language: fr
"""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from cfm.exceptions import ConfigError

logger = logging.getLogger(__name__)

# Canonical type used whenever a source type token is empty or unrecognised
DEFAULT_CONTROL_TYPE = "TextField"

# Prefix for names synthesised for controls the analyzer left unnamed
SYNTHESIZED_NAME_PREFIX = "Control_"

# View name used when the analyzer does not report one
DEFAULT_VIEW_NAME = "view1.xsl"

# Form identifier used when neither a file name nor a form name is present
DEFAULT_FORM_NAME = "UnknownForm"

# Target used by the demo script when none is given
DEFAULT_TARGET = "nintex"

OUTPUT_FORMATS = ("JSON", "YAML")


@dataclass
class GenerationOptions:
    """
    Switches applied uniformly to every generator call in a batch.

    Every switch only adds or removes artifact content; none of them
    changes the shape of a RebuildResult.

    Properties:
        form_name:
            Output form name. Only honoured for single-form batches.
        description:
            Free text carried into generated metadata.
        include_validation_rules:
            Required flags, lookup tables and valid-value constraints.
        include_conditional_logic:
            Show/hide rules derived from dynamic sections.
        include_calculations:
            Formulas carried in the "Calculation" extension property.
        generate_workflow:
            Emit a companion workflow definition artifact.
        output_format:
            Encoding of the primary output, "JSON" or "YAML".
        default_language:
            Language key for generated translations.
        include_metadata:
            Emit metadata.json / conversion-info.txt artifacts.
        include_comments:
            Emit explanatory comments in generated scripts.
        variable_prefix:
            Prefix for generated variable identifiers.
        layout_type:
            "Responsive" or "Fixed" target layout.
    """

    form_name: Optional[str] = None
    description: Optional[str] = None
    include_validation_rules: bool = True
    include_conditional_logic: bool = True
    include_calculations: bool = True
    generate_workflow: bool = False
    output_format: str = "JSON"
    default_language: str = "en"
    include_metadata: bool = True
    include_comments: bool = True
    variable_prefix: str = "se_"
    layout_type: str = "Responsive"

    def __post_init__(self) -> None:
        self.output_format = (self.output_format or "JSON").upper()
        if self.output_format not in OUTPUT_FORMATS:
            raise ConfigError(
                f"Unsupported output format '{self.output_format}', expected one of {', '.join(OUTPUT_FORMATS)}"
            )


def options_from_dict(d: Optional[Dict[str, Any]]) -> GenerationOptions:
    """
    Build GenerationOptions from a plain mapping.

    Args:
        d: Mapping of option name to value (None means all defaults)

    Returns:
        GenerationOptions instance

    Raises:
        ConfigError: If the document is not a mapping or has unknown keys
    """
    if d is None:
        return GenerationOptions()
    if not isinstance(d, dict):
        raise ConfigError(f"Options document must be a mapping, got {type(d).__name__}")

    known = {f.name for f in fields(GenerationOptions)}
    unknown = sorted(set(d) - known)
    if unknown:
        raise ConfigError(f"Unknown generation options: {', '.join(unknown)}")

    return GenerationOptions(**d)


def load_options(path: Union[str, Path]) -> GenerationOptions:
    """Load GenerationOptions from a YAML file."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid options file {path}: {e}") from e

    options = options_from_dict(data)
    logger.debug(f"Loaded generation options from {path}")
    return options
