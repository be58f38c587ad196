"""Tests for explore recommendations."""

from thouthy.services.explore import explore_recommendation
from tests.factories import make_record


class TestExploreRecommendation:
    def test_action_item_from_text(self):
        rec = explore_recommendation(make_record(text="Need to call the plumber"))
        assert rec is not None
        assert rec.type == "Action Item"
        assert rec.confidence == 75

    def test_action_item_from_potential(self):
        rec = explore_recommendation(make_record(text="Gutters", best_potential="To-Do"))
        assert rec.type == "Action Item"

    def test_action_beats_business(self):
        rec = explore_recommendation(make_record(text="Need to build a startup"))
        assert rec.type == "Action Item"

    def test_business_idea_from_text(self):
        rec = explore_recommendation(make_record(text="A customer wants simpler onboarding"))
        assert rec.type == "Business Idea"
        assert rec.confidence == 65

    def test_business_idea_from_tag(self):
        rec = explore_recommendation(make_record(text="Coffee cart", tags=["business"]))
        assert rec.type == "Business Idea"

    def test_worth_sharing_from_text(self):
        rec = explore_recommendation(make_record(text="I realized patience compounds"))
        assert rec.type == "Worth Sharing"
        assert rec.confidence == 70

    def test_worth_sharing_from_suggestion(self):
        rec = explore_recommendation(make_record(text="Quiet evening", best_potential="Share"))
        assert rec.type == "Worth Sharing"

    def test_worth_sharing_from_score(self):
        assert explore_recommendation(make_record(text="Quiet evening", powerful_score=60))
        assert explore_recommendation(make_record(text="Quiet evening", powerful_score=59)) is None

    def test_plain_note(self):
        assert explore_recommendation(make_record(text="The sunset was orange tonight")) is None
