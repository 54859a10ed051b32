from typing import Any, Iterable, Mapping, NamedTuple


class Score(NamedTuple):
    correct: int
    total: int
    percent: int


def percent_of(correct: int, total: int) -> int:
    """
    Whole-number percentage rounded half up.

    Integer arithmetic keeps the figure identical on every surface
    (JSON, CSV, spreadsheet, PDF); a zero-question exam is 0%.
    """
    if total <= 0:
        return 0
    return (correct * 200 + total) // (total * 2)


def _field(answer: Any, name: str):
    if isinstance(answer, Mapping):
        return answer.get(name)
    return getattr(answer, name, None)


def score(answers: Iterable[Any], key: Mapping[int, str], total: int) -> Score:
    """
    Count answers whose chosen label matches the key exactly.

    Answers may be dicts or objects carrying ``question_id`` and ``chosen``.
    Unknown or malformed question ids and missing labels are simply not
    correct; this never raises.
    """
    correct = 0
    for answer in answers:
        chosen = _field(answer, "chosen")
        if chosen is None:
            continue
        try:
            expected = key.get(_field(answer, "question_id"))
        except TypeError:
            # unhashable id, cannot be a key entry
            continue
        if expected is not None and chosen == expected:
            correct += 1

    return Score(correct=correct, total=total, percent=percent_of(correct, total))
