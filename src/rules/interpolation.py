"""
Template interpolation for action parameters

Supported references: ${email.<field>}, ${senderInfo.<field>}, ${senderScore}
and ${variables.<name>}. Alternatives separated by "||" fall through to the
first reference with a non-empty value. Anything that cannot be resolved is
left in the output untouched.
"""
import re
from typing import Any, Dict, Optional

from .operators import to_text
from .schema import RuleContext

REFERENCE_PATTERN = re.compile(r'\$\{([^{}]+)\}')
_UNRESOLVED = object()


def _namespace(model) -> Dict[str, Any]:
    values = model.model_dump()
    values.update(model.model_dump(by_alias=True))
    return values


def _resolve(reference: str, context: RuleContext, variables: Dict[str, Any]) -> Any:
    reference = reference.strip()
    if reference == 'senderScore':
        return context.sender_score or 0

    namespace, _, name = reference.partition('.')
    if not name or not re.fullmatch(r'\w+', name):
        return _UNRESOLVED

    if namespace == 'email':
        values = _namespace(context.email)
    elif namespace == 'senderInfo':
        values = _namespace(context.sender_info)
    elif namespace == 'variables':
        values = variables
    else:
        return _UNRESOLVED

    value = values.get(name)
    if value is None or value == '':
        return _UNRESOLVED
    return value


def interpolate(template: Optional[str], context: RuleContext, variables: Optional[Dict[str, Any]] = None) -> str:
    """Expand ${...} references in a template"""
    if template is None:
        return ''
    if variables is None:
        variables = context.variables

    def replace(match):
        for alternative in match.group(1).split('||'):
            value = _resolve(alternative, context, variables)
            if value is not _UNRESOLVED:
                return to_text(value)
        return match.group(0)

    return REFERENCE_PATTERN.sub(replace, str(template))
