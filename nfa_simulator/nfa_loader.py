import json
import logging
from typing import Dict, Optional

from .conf import get_setting
from .nfa_definition import EPSILON, Consume, Label, NFADefinition, make_definition

logger = logging.getLogger(__name__)


class DefinitionError(ValueError):
    """Raised when an NFA definition cannot be read or has the wrong shape."""


def _resolve_epsilon_key(epsilon_key: Optional[str]) -> str:
    return get_setting('EPSILON_KEY') if epsilon_key is None else epsilon_key


def validate_nfa_structure(data, epsilon_key: Optional[str] = None) -> Dict:
    """
    Validates that a decoded JSON document has the shape of an NFA definition.

    Only the shape is checked. States that are referenced but never given
    transitions are legal (they are sink states).

    Args:
        data: The decoded JSON document
        epsilon_key: Key marking epsilon moves (defaults to the EPSILON_KEY setting)

    Returns:
        Dict: Validation result with 'valid' boolean and optional 'error' message
    """
    epsilon_key = _resolve_epsilon_key(epsilon_key)

    if not isinstance(data, dict):
        return {'valid': False, 'error': 'NFA definition must be a dictionary'}

    required_keys = ['start_state', 'accept_states', 'transitions']

    for key in required_keys:
        if key not in data:
            return {'valid': False, 'error': f'Missing required key: {key}'}

    if not isinstance(data['start_state'], str) or not data['start_state']:
        return {'valid': False, 'error': 'start_state must be a non-empty string'}

    if not isinstance(data['accept_states'], list):
        return {'valid': False, 'error': 'accept_states must be a list'}

    for state in data['accept_states']:
        if not isinstance(state, str):
            return {'valid': False, 'error': f'Accepting state {state!r} must be a string'}

    if not isinstance(data['transitions'], dict):
        return {'valid': False, 'error': 'transitions must be a dictionary'}

    for state, moves in data['transitions'].items():
        if not isinstance(moves, dict):
            return {'valid': False, 'error': f'Transitions of state {state} must be a dictionary'}

        for symbol, destinations in moves.items():
            if symbol != epsilon_key and len(symbol) != 1:
                return {
                    'valid': False,
                    'error': f'Symbol {symbol!r} of state {state} must be a single character '
                             f'or the epsilon key {epsilon_key!r}'
                }

            if not isinstance(destinations, list):
                return {'valid': False, 'error': f'Destinations of {state} on {symbol!r} must be a list'}

            for destination in destinations:
                if not isinstance(destination, str):
                    return {
                        'valid': False,
                        'error': f'Destination {destination!r} of {state} on {symbol!r} must be a string'
                    }

    description = data.get('description')
    if description is not None and not isinstance(description, str):
        return {'valid': False, 'error': 'description must be a string or null'}

    return {'valid': True}


def _label_for(symbol: str, epsilon_key: str) -> Label:
    if symbol == epsilon_key:
        return EPSILON
    return Consume(symbol)


def parse_definition(data, epsilon_key: Optional[str] = None) -> NFADefinition:
    """
    Convert a decoded JSON document into an NFADefinition.

    Raises:
        DefinitionError: If the document does not have the shape of a definition
    """
    epsilon_key = _resolve_epsilon_key(epsilon_key)

    validation = validate_nfa_structure(data, epsilon_key)
    if not validation['valid']:
        raise DefinitionError(validation['error'])

    transitions = {}
    for state, moves in data['transitions'].items():
        transitions[state] = {
            _label_for(symbol, epsilon_key): destinations
            for symbol, destinations in moves.items()
        }

    return make_definition(
        start_state=data['start_state'],
        accept_states=data['accept_states'],
        transitions=transitions,
        description=data.get('description')
    )


def load_definition(path, epsilon_key: Optional[str] = None) -> NFADefinition:
    """
    Read an NFA definition from a JSON file.

    Args:
        path: Path to a UTF-8 encoded JSON file
        epsilon_key: Key marking epsilon moves (defaults to the EPSILON_KEY setting)

    Returns:
        The parsed NFADefinition

    Raises:
        DefinitionError: If the file cannot be read, is not JSON, or has the wrong shape
    """
    try:
        with open(path, encoding='utf-8') as handle:
            data = json.load(handle)
    except OSError as e:
        logger.warning("Could not read NFA definition %s: %s", path, e)
        raise DefinitionError(f'Cannot read {path}: {e.strerror or e}') from e
    except json.JSONDecodeError as e:
        logger.warning("NFA definition %s is not valid JSON: %s", path, e)
        raise DefinitionError(f'{path} is not valid JSON: {e}') from e

    try:
        definition = parse_definition(data, epsilon_key)
    except DefinitionError as e:
        logger.warning("Rejected NFA definition %s: %s", path, e)
        raise DefinitionError(f'{path}: {e}') from e

    logger.info("Loaded NFA definition %s (%d states)", path, len(definition.states()))
    return definition


def definition_to_dict(nfa: NFADefinition, epsilon_key: Optional[str] = None) -> Dict:
    """
    Render an NFADefinition back into its JSON document shape.

    State lists are sorted so the output is stable.
    """
    epsilon_key = _resolve_epsilon_key(epsilon_key)

    transitions = {}
    for state, moves in nfa.transitions.items():
        transitions[state] = {
            (epsilon_key if label is EPSILON else label.symbol): sorted(destinations)
            for label, destinations in moves.items()
        }

    return {
        'start_state': nfa.start_state,
        'accept_states': sorted(nfa.accept_states),
        'transitions': transitions,
        'description': nfa.description
    }
