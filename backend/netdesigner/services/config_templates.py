"""
Configuration template helpers.

Templates are vendor configs with {{name}} placeholders. Each placeholder must
name a declared variable; rendering substitutes the supplied value, else the
variable's default, else an empty string.
"""
import re
from typing import List, Dict, Any, Optional

from netdesigner.core.exceptions import ValidationError


PLACEHOLDER_RE = re.compile(r"\{\{([^}]+)\}\}")


def extract_variables(template: Optional[str]) -> List[str]:
    """Unique placeholder names in order of first appearance"""
    names: List[str] = []
    for match in PLACEHOLDER_RE.finditer(template or ""):
        name = match.group(1)
        if name not in names:
            names.append(name)
    return names


def undefined_placeholders(template: Optional[str], variables: List[Dict[str, Any]]) -> List[str]:
    defined = {v.get("name") for v in variables or []}
    return [name for name in extract_variables(template) if name not in defined]


def validate_template_variables(template: Optional[str], variables: List[Dict[str, Any]]) -> None:
    """Every placeholder in the template must be a declared variable"""
    missing = undefined_placeholders(template, variables)
    if missing:
        raise ValidationError(
            f"Template uses undefined variables: {', '.join(missing)}",
            field="variables",
            errors=[f"Undefined variable: {name}" for name in missing],
        )


def validate_variable_values(variables: List[Dict[str, Any]], values: Dict[str, Any]) -> List[str]:
    """Error messages for missing required values and regex mismatches"""
    errors = []
    for variable in variables or []:
        name = variable.get("name")
        value = values.get(name)
        if value in (None, ""):
            if variable.get("required") and variable.get("default_value") in (None, ""):
                errors.append(f"Variable '{name}' is required")
            continue
        pattern = variable.get("validation_regex")
        if pattern and not re.fullmatch(pattern, str(value)):
            errors.append(f"Variable '{name}' does not match the required format")
    return errors


def render_template(template: Optional[str], variables: List[Dict[str, Any]], values: Dict[str, Any]) -> str:
    """Substitute every declared variable; value, else default, else empty"""
    rendered = template or ""
    for variable in variables or []:
        name = variable.get("name")
        value = values.get(name)
        if value is None:
            value = variable.get("default_value")
        if value is None:
            value = ""
        rendered = rendered.replace("{{" + name + "}}", str(value))
    return rendered


def render_checked(template: Optional[str], variables: List[Dict[str, Any]], values: Dict[str, Any]) -> str:
    """Validate values then render; raises ValidationError listing every problem"""
    errors = validate_variable_values(variables, values)
    if errors:
        raise ValidationError(", ".join(errors), field="variable_values", errors=errors)
    return render_template(template, variables, values)
