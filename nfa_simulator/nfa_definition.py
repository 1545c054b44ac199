from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, NamedTuple, Optional, Union


class Epsilon(Enum):
    """Label of a move that consumes no input symbol."""
    EPSILON = 'epsilon'

    def __repr__(self):
        return 'EPSILON'


EPSILON = Epsilon.EPSILON


class Consume(NamedTuple):
    """Label of an ordinary move that consumes exactly one input symbol."""
    symbol: str


Label = Union[Consume, Epsilon]


class NFADefinition(NamedTuple):
    """
    Immutable description of an NFA with epsilon moves.

    Fields:
        start_state: The initial state
        accept_states: States accepting the input once it is fully consumed
        transitions: state -> label -> destination states (read-only views)
        description: Free-text label, never consulted during simulation
    """
    start_state: str
    accept_states: FrozenSet[str]
    transitions: Mapping[str, Mapping[Label, FrozenSet[str]]]
    description: Optional[str] = None

    def states(self) -> FrozenSet[str]:
        """
        Every state named anywhere in the definition, including sink states
        that only appear as destinations.
        """
        named = {self.start_state}
        named.update(self.accept_states)
        for state, moves in self.transitions.items():
            named.add(state)
            for destinations in moves.values():
                named.update(destinations)
        return frozenset(named)


def make_definition(start_state: str,
                    accept_states: Iterable[str],
                    transitions: Mapping[str, Mapping[Label, Iterable[str]]],
                    description: Optional[str] = None) -> NFADefinition:
    """
    Build an NFADefinition, freezing every collection it is given.

    Args:
        start_state: The initial state
        accept_states: Accepting states (duplicates collapse)
        transitions: Dictionary of transitions keyed by state, then by label
        description: Optional free-text label

    Returns:
        An NFADefinition that no caller can mutate afterwards
    """
    frozen: Dict[str, Mapping[Label, FrozenSet[str]]] = {}
    for state, moves in transitions.items():
        frozen[state] = MappingProxyType({
            label: frozenset(destinations) for label, destinations in moves.items()
        })

    return NFADefinition(
        start_state=start_state,
        accept_states=frozenset(accept_states),
        transitions=MappingProxyType(frozen),
        description=description
    )
