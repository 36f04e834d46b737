import pytest

from liftlog.repositories.exercise_repo import ExerciseRepository
from liftlog.services.matching import (
    ExerciseMatcher,
    levenshtein,
    normalize,
    normalize_for_storage,
    similarity,
)


def test_normalize_strips_punctuation_and_case():
    assert normalize("  Bench   Press!! ") == "bench press"
    assert normalize("Pull-Ups") == "pull ups"
    assert normalize("DB_row") == "db row"

def test_normalize_for_storage_title_cases():
    assert normalize_for_storage("incline  db press") == "Incline Db Press"
    assert normalize_for_storage("!!!") == ""

@pytest.mark.parametrize("word", ["bench press", "squat", "a", ""])
def test_similarity_of_identical_strings_is_one(word):
    assert similarity(word, word) == 1.0

def test_levenshtein_basics():
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("", "abc") == 3
    assert similarity("bench pres", "bench press") == pytest.approx(1 - 1 / 11)


def test_find_or_create_is_idempotent_under_minor_variation(db):
    m = ExerciseMatcher(db)
    first = m.find_or_create("Bench Press", "Chest")
    again = m.find_or_create("bench press!!")
    typo = m.find_or_create("Bench Pres")
    assert first.id == again.id == typo.id
    assert len(ExerciseRepository(db).list_all()) == 1

def test_new_exercise_is_stored_title_cased(db):
    ex = ExerciseMatcher(db).find_or_create("romanian deadlift", "Legs")
    assert ex.name == "Romanian Deadlift"
    assert ex.muscle_group == "Legs"

def test_blank_name_is_rejected(db):
    with pytest.raises(ValueError):
        ExerciseMatcher(db).find_or_create("  ?! ")

def test_no_shared_token_never_merges(db):
    repo = ExerciseRepository(db)
    repo.create(name="Curls", muscle_group="Arms")
    m = ExerciseMatcher(db)
    result = m.find_best_match("squats")
    assert result.exercise is None
    assert m.find_or_create("squats").name == "Squats"

def test_leg_curl_is_not_merged_into_bicep_curl(db):
    repo = ExerciseRepository(db)
    curl = repo.create(name="Bicep Curl", muscle_group="Arms")
    press = repo.create(name="Leg Press", muscle_group="Legs")
    created = ExerciseMatcher(db).find_or_create("leg curl", "Legs")
    assert created.id not in (curl.id, press.id)

def test_resolve_refuses_low_confidence_candidate(db):
    ExerciseRepository(db).create(name="Bench Press", muscle_group="Chest")
    m = ExerciseMatcher(db)
    best = m.find_best_match("bench dips")
    assert best.exercise is not None and best.confidence < m.threshold
    assert m.resolve("bench dips") is None
    assert m.resolve("BENCH PRESS").name == "Bench Press"

def test_reusing_hidden_exercise_unhides_it(db):
    repo = ExerciseRepository(db)
    ex = repo.create(name="Hack Squat", muscle_group="Legs")
    repo.set_hidden(ex.id, hidden=True)
    again = ExerciseMatcher(db).find_or_create("hack squat")
    assert again.id == ex.id
    assert again.hidden is False

def test_search_ranks_and_skips_hidden(db):
    repo = ExerciseRepository(db)
    repo.create(name="Bench Press", muscle_group="Chest")
    repo.create(name="Incline Bench Press", muscle_group="Chest")
    hidden = repo.create(name="Bench Dip", muscle_group="Chest")
    repo.set_hidden(hidden.id, hidden=True)
    results = ExerciseMatcher(db).search("bench press")
    names = [ex.name for ex, _ in results]
    assert names[0] == "Bench Press"
    assert "Incline Bench Press" in names
    assert "Bench Dip" not in names
    assert all(score >= 0.3 for _, score in results)
    assert ExerciseMatcher(db).search("   ") == []
