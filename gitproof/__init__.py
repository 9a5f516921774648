"""GitProof: deterministic developer scores from GitHub account telemetry"""

from .analyzer import ProfileAnalyzer
from .comparator import ProfileComparator
from .errors import EnrichmentUnavailable, InvalidProfileError, PersistenceError
from .models import CanonicalProfileRecord, ComparisonResult, MetricResult, ProfileAnalysis, ScoringResult
from .normalizer import GraphQLPayload, RestPayload, normalize
from .scoring_system import ScoringSystem

__version__ = "1.0.0"
