from .config import EPSILON, ReplayOptions, get_replay_options, set_replay_options
from .errors import (
    ReplayError,
    AmbiguousSelection,
    DegenerateGeometry,
    UnknownReference,
    MacroArityMismatch,
    DuplicateLabel,
)
from .model import Point, Segment, Circle, Line, IntersectionCandidate, ConstructionState
from .state import (
    initialize_given,
    add_point,
    add_segment,
    add_circle,
    add_line,
    get_point,
    get_entity,
    get_all_points,
    get_all_segments,
    get_all_circles,
    distance,
)
from .intersections import find_new_intersections
from .selectors import resolve_selector, candidates_for_pair, tie_break, disambiguate
from .facts import DistancePair, Citation, Fact, FactStore
from .derivation import derive_def15_facts
from .script import Step, Proposition, compass, straightedge, intersection, extend, macro
from .interpreter import ReplayResult, ReplayScope, replay, replay_construction, run_proposition
from .book import BOOK_I, get_proposition
from .macros import MacroDef, MacroResult, MACRO_REGISTRY, build_registry, make_macro
from .reference import REFERENCE_BUILDERS, compare_results, fact_signatures
from .validate import validate_proposition, collect_issues, ValidationError, ValidationIssue
from .loader import load_proposition, dump_proposition, proposition_from_dict, proposition_to_dict

__all__ = [
    'EPSILON',
    'ReplayOptions',
    'get_replay_options',
    'set_replay_options',
    'ReplayError',
    'AmbiguousSelection',
    'DegenerateGeometry',
    'UnknownReference',
    'MacroArityMismatch',
    'DuplicateLabel',
    'Point',
    'Segment',
    'Circle',
    'Line',
    'IntersectionCandidate',
    'ConstructionState',
    'initialize_given',
    'add_point',
    'add_segment',
    'add_circle',
    'add_line',
    'get_point',
    'get_entity',
    'get_all_points',
    'get_all_segments',
    'get_all_circles',
    'distance',
    'find_new_intersections',
    'resolve_selector',
    'candidates_for_pair',
    'tie_break',
    'disambiguate',
    'DistancePair',
    'Citation',
    'Fact',
    'FactStore',
    'derive_def15_facts',
    'Step',
    'Proposition',
    'compass',
    'straightedge',
    'intersection',
    'extend',
    'macro',
    'ReplayResult',
    'ReplayScope',
    'replay',
    'replay_construction',
    'run_proposition',
    'BOOK_I',
    'get_proposition',
    'MacroDef',
    'MacroResult',
    'MACRO_REGISTRY',
    'build_registry',
    'make_macro',
    'REFERENCE_BUILDERS',
    'compare_results',
    'fact_signatures',
    'validate_proposition',
    'collect_issues',
    'ValidationError',
    'ValidationIssue',
    'load_proposition',
    'dump_proposition',
    'proposition_from_dict',
    'proposition_to_dict',
]
