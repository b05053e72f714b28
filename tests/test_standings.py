from pysurvivor.config import settings
from pysurvivor.engine.standings import compute_standings, strikes_by_week, week_out_of_range_reason
from pysurvivor.models import Game, Member, Outcome, Pick, PoolRules
from tests.support import SEASON, utc


MEMBERS = [
    Member(member_id="alice", display_name="Alice"),
    Member(member_id="bob", display_name="Bob"),
    Member(member_id="cara", display_name="Cara"),
]


def _rules(**overrides) -> PoolRules:
    payload = {"pool_id": "pool", "season": SEASON, "strikes_allowed": 1}
    payload.update(overrides)
    return PoolRules(**payload)


def _game(week: int, home: str, away: str, winner: str | None, status: str = "final") -> Game:
    return Game(
        season=SEASON,
        week=week,
        home_team=home,
        away_team=away,
        kickoff=utc(2024, 9, 1 + week, 17, 0),
        status=status,
        winner=winner,
    )


def _pick(member: str, week: int, team: str, pool_id: str = "pool") -> Pick:
    return Pick(pool_id=pool_id, member_id=member, week=week, team=team)


GAMES = [
    _game(1, "KC", "BAL", "KC"),
    _game(1, "PHI", "GB", "PHI"),
    _game(1, "ATL", "PIT", "PIT"),
    _game(2, "BUF", "MIA", "BUF"),
    _game(2, "DAL", "NO", "NO"),
    _game(2, "NYG", "WAS", "TIE"),
    _game(3, "DET", "ARI", None, status="scheduled"),
    _game(3, "SF", "LAR", "LAR"),
]

PICKS = [
    _pick("alice", 1, "KC"),
    _pick("alice", 2, "BUF"),
    _pick("alice", 3, "DET"),
    _pick("bob", 1, "ATL"),
    _pick("bob", 2, "MIA"),
    _pick("cara", 1, "PHI"),
    _pick("cara", 2, "NYG"),
    _pick("cara", 3, "SF"),
]


def test_single_strike_pool():
    standings = compute_standings(_rules(), 3, MEMBERS, PICKS, GAMES)
    alice = standings.get("alice")
    bob = standings.get("bob")
    cara = standings.get("cara")

    assert (alice.wins, alice.losses, alice.pushes, alice.strikes) == (2, 0, 0, 0)
    assert alice.alive and alice.eliminated_week is None
    assert alice.week_pick == "DET" and alice.week_outcome is Outcome.PENDING

    assert (bob.wins, bob.losses, bob.strikes) == (0, 2, 2)
    assert not bob.alive and bob.eliminated_week == 1
    assert bob.strikes_remaining == 0
    assert bob.week_pick is None

    assert (cara.wins, cara.losses, cara.pushes) == (1, 1, 1)
    assert cara.record == "1-1-1"
    assert not cara.alive and cara.eliminated_week == 3

    assert standings.alive_count == 1
    assert standings.eliminated_count == 2


def test_entries_sorted_alive_first_then_fewest_strikes():
    standings = compute_standings(_rules(strikes_allowed=3), 3, MEMBERS, PICKS, GAMES)
    assert [entry.member_id for entry in standings.entries] == ["alice", "cara", "bob"]
    assert all(entry.alive for entry in standings.entries)
    assert standings.get("bob").strikes_remaining == 1


def test_tie_rule_changes_outcome():
    loss_rules = _rules(tie_rule="loss")
    standings = compute_standings(loss_rules, 2, MEMBERS, PICKS, GAMES)
    cara = standings.get("cara")
    assert (cara.wins, cara.losses, cara.pushes) == (1, 1, 0)
    assert not cara.alive and cara.eliminated_week == 2

    win_rules = _rules(tie_rule="win")
    assert compute_standings(win_rules, 2, MEMBERS, PICKS, GAMES).get("cara").wins == 2


def test_recomputation_is_idempotent():
    first = compute_standings(_rules(), 3, MEMBERS, PICKS, GAMES)
    second = compute_standings(_rules(), 3, MEMBERS, list(reversed(PICKS)), list(reversed(GAMES)))
    assert first == second


def test_strikes_never_decrease_as_weeks_advance():
    history = strikes_by_week(_rules(strikes_allowed=5), [1, 2, 3], MEMBERS, PICKS, GAMES)
    for member in MEMBERS:
        strikes = [history[week].get(member.member_id).strikes for week in (1, 2, 3)]
        assert strikes == sorted(strikes)


def test_eliminated_member_stays_eliminated():
    history = strikes_by_week(_rules(), [1, 2, 3], MEMBERS, PICKS, GAMES)
    assert [history[week].get("bob").alive for week in (1, 2, 3)] == [False, False, False]


def test_missing_game_counts_as_pending():
    picks = [_pick("alice", 1, "DEN")]
    standings = compute_standings(_rules(), 1, MEMBERS, picks, GAMES)
    alice = standings.get("alice")
    assert alice.week_outcome is Outcome.PENDING
    assert alice.strikes == 0 and alice.alive


def test_corrected_score_flips_result():
    corrected = [game for game in GAMES if game.home_team != "KC"] + [_game(1, "KC", "BAL", "BAL")]
    before = compute_standings(_rules(), 1, MEMBERS, PICKS, GAMES).get("alice")
    after = compute_standings(_rules(), 1, MEMBERS, PICKS, corrected).get("alice")
    assert before.alive
    assert not after.alive and after.eliminated_week == 1


def test_zero_strikes_allowed_eliminates_everyone():
    standings = compute_standings(_rules(strikes_allowed=0), 1, MEMBERS, PICKS, GAMES)
    assert standings.alive_count == 0
    assert standings.get("alice").eliminated_week is None
    assert standings.get("bob").eliminated_week == 1


def test_member_without_picks_is_alive():
    standings = compute_standings(_rules(), 1, MEMBERS + [Member(member_id="dan")], [], GAMES)
    dan = standings.get("dan")
    assert dan.alive and dan.record == "0-0"
    assert dan.display_name == "dan"


def test_picks_from_other_pools_and_later_weeks_ignored():
    picks = [_pick("alice", 1, "ATL", pool_id="other"), _pick("alice", 3, "SF")]
    standings = compute_standings(_rules(), 2, MEMBERS, picks, GAMES)
    assert standings.get("alice").strikes == 0


def test_same_week_pick_in_another_pool_does_not_shadow_own_pick():
    picks = [_pick("alice", 1, "KC"), _pick("alice", 1, "PIT", pool_id="other")]
    for ordering in (picks, list(reversed(picks))):
        alice = compute_standings(_rules(), 1, MEMBERS, ordering, GAMES).get("alice")
        assert alice.wins == 1
        assert alice.week_pick == "KC"
        assert alice.week_outcome is Outcome.WIN


def test_weeks_before_start_week_ignored():
    rules = _rules(start_week=2)
    assert week_out_of_range_reason(rules, 1) is not None
    standings = compute_standings(rules, 3, MEMBERS, PICKS, GAMES)
    bob = standings.get("bob")
    assert bob.losses == 1 and bob.eliminated_week == 2


def test_playoff_weeks_excluded_unless_enabled():
    picks = [_pick("alice", 3, "SF")]
    excluded = compute_standings(_rules(), 3, MEMBERS, picks, GAMES, regular_season_weeks=2)
    assert excluded.get("alice").strikes == 0
    included = compute_standings(_rules(include_playoffs=True), 3, MEMBERS, picks, GAMES, regular_season_weeks=2)
    assert included.get("alice").strikes == 1
    assert week_out_of_range_reason(_rules(include_playoffs=True), 3, regular_season_weeks=2) is None
    assert week_out_of_range_reason(_rules(), 3, regular_season_weeks=2) == "pool excludes playoff weeks"


def test_regular_season_cutoff_not_read_from_environment(monkeypatch):
    monkeypatch.setenv(settings.REGULAR_SEASON_WEEKS_ENV, "2")
    picks = [_pick("alice", 3, "SF")]
    assert compute_standings(_rules(), 3, MEMBERS, picks, GAMES).get("alice").strikes == 1
    history = strikes_by_week(_rules(), [3], MEMBERS, picks, GAMES, regular_season_weeks=2)
    assert history[3].get("alice").strikes == 0


def test_to_dict_serializes_outcomes():
    payload = compute_standings(_rules(), 3, MEMBERS, PICKS, GAMES).to_dict()
    assert payload["alive_count"] == 1
    alice = next(entry for entry in payload["entries"] if entry["member_id"] == "alice")
    assert alice["week_outcome"] == "pending"
