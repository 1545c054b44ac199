import logging
from typing import Dict, FrozenSet, Iterable, Iterator, Set

from .nfa_definition import EPSILON, Consume, Label, NFADefinition

logger = logging.getLogger(__name__)


def _get_transitions(nfa: NFADefinition, state: str, label: Label) -> FrozenSet[str]:
    """
    Get all states reachable from given state on given label.

    Args:
        nfa: The NFA definition
        state: Current state
        label: Consume(symbol) or EPSILON

    Returns:
        Set of next states (empty if the state or label has no entry)
    """
    moves = nfa.transitions.get(state)
    if moves is None:
        return frozenset()

    return moves.get(label, frozenset())


def epsilon_closure(nfa: NFADefinition, states: Iterable[str]) -> Set[str]:
    """
    Compute epsilon closure of a set of states.

    A state is only pushed onto the work-list when it is first added to the
    closure, so cycles of epsilon transitions terminate.

    Args:
        nfa: The NFA definition
        states: Set of states to compute closure for

    Returns:
        Set of states reachable via zero or more epsilon transitions
    """
    closure = set(states)
    stack = list(closure)

    while stack:
        current = stack.pop()

        for next_state in _get_transitions(nfa, current, EPSILON):
            if next_state not in closure:
                closure.add(next_state)
                stack.append(next_state)

    return closure


def step(nfa: NFADefinition, states: Iterable[str], symbol: str) -> Set[str]:
    """
    Take exactly one transition labelled `symbol` from every state in `states`.

    Epsilon closure is not applied to the result.

    Args:
        nfa: The NFA definition
        states: Current state set
        symbol: Input symbol

    Returns:
        Union of the destinations of every matching transition
    """
    label = Consume(symbol)
    next_states = set()

    for state in states:
        next_states.update(_get_transitions(nfa, state, label))

    return next_states


def simulate(nfa: NFADefinition, input_string: str) -> bool:
    """
    Decide whether the NFA accepts the given input string.

    The simulation tracks the set of every state the automaton could be in,
    so all nondeterministic branches advance together.

    Args:
        nfa: The NFA definition
        input_string: The input string to simulate

    Returns:
        True if some state reached after consuming the whole input is accepting
    """
    current_states = epsilon_closure(nfa, {nfa.start_state})

    for symbol in input_string:
        current_states = epsilon_closure(nfa, step(nfa, current_states, symbol))

        # No live configuration left, nothing can be accepted from here
        if not current_states:
            return False

    return not current_states.isdisjoint(nfa.accept_states)


def simulate_trace(nfa: NFADefinition, input_string: str) -> Iterator[Dict]:
    """
    Generator version of simulate that yields the state set after each symbol.

    Args:
        nfa: The NFA definition
        input_string: The input string to simulate

    Yields:
        Dictionary describing each stage of the simulation:
        - Start: {'type': 'initial', 'states': [...]}
        - After each symbol: {'type': 'step', 'position': int, 'symbol': str, 'states': [...]}
        - State set became empty: {'type': 'halted', 'position': int, 'remaining_input': str}
        - Always last: {'type': 'summary', 'accepted': bool, 'final_states': [...],
                        'matched_accept_states': [...]}
    """
    current_states = epsilon_closure(nfa, {nfa.start_state})
    logger.debug("Initial state set for %r: %s", input_string, sorted(current_states))

    yield {
        'type': 'initial',
        'states': sorted(current_states)
    }

    for position, symbol in enumerate(input_string):
        current_states = epsilon_closure(nfa, step(nfa, current_states, symbol))

        yield {
            'type': 'step',
            'position': position,
            'symbol': symbol,
            'states': sorted(current_states)
        }

        if not current_states:
            logger.debug("Simulation halted at position %d of %r", position, input_string)
            yield {
                'type': 'halted',
                'position': position,
                'remaining_input': input_string[position + 1:]
            }
            break

    matched = current_states & nfa.accept_states

    yield {
        'type': 'summary',
        'accepted': bool(matched),
        'final_states': sorted(current_states),
        'matched_accept_states': sorted(matched)
    }
