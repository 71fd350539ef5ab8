"""
PXWeb table metadata in the consumer shape.

Calculated fields appear to consumers as extra values of the variable they
extend, so their labels are appended to that variable's value texts.
"""

from typing import List, Dict, Optional, Any

from geostat.config.datasets import DatasetConfig, get_dataset


def _describe_variable(variable: Dict[str, Any], config: DatasetConfig,
                       lang: str) -> Dict[str, Any]:
    values = list(variable.get("values") or [])
    value_texts = list(variable.get("valueTexts") or [])

    if config.derivation_variable and variable.get("code") == config.derivation_variable:
        extra = [rule.label(lang) for rule in config.derivations]
        value_texts.extend(extra)
        values.extend(str(len(values) + i) for i in range(len(extra)))

    return {
        "code": variable.get("code"),
        "text": variable.get("text"),
        "values": [str(i) for i in range(len(values))],
        "valueTexts": value_texts,
        "time": bool(variable.get("time", False)),
    }


def describe_variables(metadata: Dict[str, Any], dataset_id: Optional[str] = None,
                       lang: str = "ka",
                       datasets: Optional[Dict[str, DatasetConfig]] = None) -> Dict[str, Any]:
    """
    Normalize PXWeb table metadata.

    Args:
        metadata: Parsed PXWeb metadata ({"title", "variables": [...], ...})
        dataset_id: Dataset whose calculated fields extend a variable
        lang: Language of the calculated-field labels
        datasets: Dataset table (the built-in registry when omitted)

    Returns:
        {title, variables, updated, source, note, language}; the input is
        not modified
    """
    config = get_dataset(dataset_id, datasets)
    variables: List[Dict[str, Any]] = metadata.get("variables") or []
    return {
        "title": metadata.get("title") or "Unknown Dataset",
        "variables": [_describe_variable(v, config, lang) for v in variables],
        "updated": metadata.get("updated"),
        "source": metadata.get("source"),
        "note": metadata.get("note"),
        "language": metadata.get("language") or lang,
    }
