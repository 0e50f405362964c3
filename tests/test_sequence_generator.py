import pytest

from flyby_planner.control.search import CancellationToken, ProgressReporter, SearchStatus
from flyby_planner.errors import PreconditionError
from flyby_planner.mission.sequence import FlybySequence, back_leg_spacings
from flyby_planner.mission.sequence_generator import FlybySequenceGenerator, SearchParameters
from flyby_planner.system.kerbol import DUNA, EVE, IKE, JOOL, KERBIN, KERBOL, LAYTHE, TYLO, kerbol_system


@pytest.fixture(scope="module")
def generator():
    return FlybySequenceGenerator(kerbol_system())


class RecordingReporter(ProgressReporter):
    """Synchronous reporter keeping every snapshot."""

    def __init__(self, cancel_after=None, token=None):
        super().__init__()
        self.snapshots = []
        self.cancel_after = cancel_after
        self.token = token

    def report(self, snapshot):
        super().report(snapshot)
        self.snapshots.append(snapshot)
        if self.cancel_after is not None and len(self.snapshots) >= self.cancel_after:
            self.token.cancel()


def _ids(sequences):
    return [s.ids for s in sequences]

def test_no_swing_by_gives_direct_sequence(generator):
    params = SearchParameters(KERBIN, JOOL, max_swing_bys=0, max_resonant_swing_bys=3, max_back_legs=3,
                              max_back_spacing=3)
    outcome = generator.generate(params)

    assert outcome.status is SearchStatus.SUCCEEDED
    assert _ids(outcome.value) == [(KERBIN, JOOL)]

def test_kerbin_duna_without_back_legs(generator):
    no_resonance = generator.generate(SearchParameters(KERBIN, DUNA, max_swing_bys=1)).unwrap()
    assert _ids(no_resonance) == [(KERBIN, DUNA)]

    resonance = generator.generate(SearchParameters(KERBIN, DUNA, max_swing_bys=1, max_resonant_swing_bys=1)).unwrap()
    assert set(_ids(resonance)) == {(KERBIN, DUNA), (KERBIN, KERBIN, DUNA)}

def test_one_back_leg(generator):
    params = SearchParameters(KERBIN, DUNA, max_swing_bys=1, max_back_legs=1)
    sequences = set(_ids(generator.generate(params).unwrap()))

    # Kerbin -> inner planet (back leg) -> Duna
    assert (KERBIN, EVE, DUNA) in sequences
    # Outer planet then back to Duna
    assert (KERBIN, JOOL, DUNA) in sequences
    assert (KERBIN, KERBIN, DUNA) not in sequences
    assert len(sequences) == 6

@pytest.mark.parametrize("params", [
    SearchParameters(KERBIN, JOOL, 2, 1, 1, 1),
    SearchParameters(KERBIN, JOOL, 3, 1, 2, 2),
    SearchParameters(JOOL, EVE, 3, 2, 2, 1),
    SearchParameters(KERBIN, KERBIN + 1, 4, 2, 2, 3),
    SearchParameters(LAYTHE, TYLO, 3, 1, 1, 2),
])
def test_bounds_hold_and_count_matches(generator, params):
    outcome = generator.generate(params)
    sequences = outcome.unwrap()

    assert len(sequences) == generator.count_feasible(params)
    assert len(set(sequences)) == len(sequences)
    for sequence in sequences:
        assert sequence.origin == params.departure_id
        assert sequence.destination == params.destination_id
        assert params.destination_id not in sequence.flybys
        assert sequence.swing_bys <= params.max_swing_bys
        assert sequence.resonant_swing_bys <= params.max_resonant_swing_bys
        assert len(sequence.back_legs) <= params.max_back_legs
        assert all(s <= params.max_back_spacing for s in back_leg_spacings(sequence.back_legs))

def test_back_spacing_is_enforced(generator):
    loose = SearchParameters(KERBIN, JOOL, 4, 0, 2, 3)
    tight = SearchParameters(KERBIN, JOOL, 4, 0, 2, 1)

    loose_ids = set(_ids(generator.generate(loose).unwrap()))
    tight_ids = set(_ids(generator.generate(tight).unwrap()))

    assert tight_ids < loose_ids
    # Back legs 0 and 2: spacing 2
    assert (KERBIN, EVE, DUNA, KERBIN, JOOL) in loose_ids
    assert (KERBIN, EVE, DUNA, KERBIN, JOOL) not in tight_ids

def test_progress_reports(generator):
    params = SearchParameters(KERBIN, JOOL, 2, 1, 1, 1)
    reporter = RecordingReporter()
    sequences = generator.generate(params, reporter=reporter).unwrap()

    evaluated = [s.evaluated for s in reporter.snapshots]
    assert evaluated == sorted(evaluated)
    assert all(s.total == len(sequences) for s in reporter.snapshots)
    assert reporter.snapshots[-1].fraction == 1.0
    assert reporter.latest == reporter.snapshots[-1]

def test_cancel_mid_run(generator):
    params = SearchParameters(KERBIN, JOOL, 4, 2, 2, 2)
    token = CancellationToken()
    reporter = RecordingReporter(cancel_after=5, token=token)

    outcome = generator.generate(params, token, reporter)

    assert outcome.status is SearchStatus.CANCELLED
    assert outcome.value is None
    # Stopped at the next checkpoint
    assert len(reporter.snapshots) == 5

def test_cancel_before_start(generator):
    token = CancellationToken()
    token.cancel()
    outcome = generator.generate(SearchParameters(KERBIN, DUNA), token)

    assert outcome.is_cancelled

@pytest.mark.parametrize("params", [
    SearchParameters(KERBIN, KERBIN),
    SearchParameters(KERBIN, IKE),
    SearchParameters(KERBIN, 99),
    SearchParameters(KERBOL, DUNA),
    SearchParameters(KERBIN, DUNA, max_swing_bys=-1),
    SearchParameters(KERBIN, DUNA, max_back_legs=1.5),
])
def test_preconditions(generator, params):
    with pytest.raises(PreconditionError):
        generator.validate(params)
    with pytest.raises(PreconditionError):
        generator.generate(params)

def test_sequences_are_flyby_sequences(generator):
    sequences = generator.generate(SearchParameters(KERBIN, DUNA, 1, 1)).unwrap()
    assert all(isinstance(s, FlybySequence) for s in sequences)
    assert all(s.names for s in sequences)

def test_count_deep_resonant_chain(inner_system):
    """Counting does not recurse once per swing-by, so long resonant chains are fine."""
    generator = FlybySequenceGenerator(inner_system)
    params = SearchParameters(1, 2, max_swing_bys=1500, max_resonant_swing_bys=1500)

    # Earth followed by k resonant Earth swing-bys then Mars, for k = 0..1500
    assert generator.count_feasible(params) == 1501

if __name__ == "__main__":
    pytest.main([__file__])
