from dartstats.scoring.feedback import derive_feedback


def test_weak_player_gets_all_tips_in_order() -> None:
    fb = derive_feedback(
        total_average=45.0,
        checkout_rate=20.0,
        scores_180=0,
        scores_140_plus=0,
        average_first_9=40.0,
        most_attempted_checkouts=[32, 40],
    )

    assert fb.strengths == ()
    assert fb.weaknesses == ("Scoring average needs improvement", "Checkout success rate needs work")
    assert fb.training_tips == (
        "Practice grouping around treble 20",
        "Work on consistent throw mechanics",
        "Practice double shooting with round the clock",
        "Focus on 32 checkout practice",
        "Focus on strong starting scores",
    )


def test_thresholds_are_inclusive() -> None:
    fb = derive_feedback(
        total_average=60.0,
        checkout_rate=40.0,
        scores_180=0,
        scores_140_plus=0,
        average_first_9=50.0,
    )

    assert fb.strengths == ("Strong scoring average", "Good checkout percentage")
    assert fb.weaknesses == ()
    assert fb.training_tips == ()


def test_no_checkout_focus_tip_without_tracked_misses() -> None:
    fb = derive_feedback(
        total_average=80.0,
        checkout_rate=0.0,
        scores_180=0,
        scores_140_plus=0,
        average_first_9=70.0,
    )

    assert fb.training_tips == ("Practice double shooting with round the clock",)


def test_maximums_and_consistency() -> None:
    fb = derive_feedback(
        total_average=90.0,
        checkout_rate=50.0,
        scores_180=2,
        scores_140_plus=5,
        average_first_9=100.0,
    )
    assert "Hit 2 maximum scores" in fb.strengths
    assert "Consistent high scoring" in fb.strengths

    fb = derive_feedback(
        total_average=90.0,
        checkout_rate=50.0,
        scores_180=2,
        scores_140_plus=4,
        average_first_9=100.0,
    )
    assert "Consistent high scoring" not in fb.strengths
