"""End-to-end tests for the research feed pipeline."""

import json

import pytest
from pydantic import ValidationError

from research_feed.config import FeedConfig
from research_feed.pipeline import ResearchFeed, build_feed
from research_feed.pipeline.feed import HORIZON_BUCKETS
from research_feed.preferences import UserPreferences
from research_feed.schemas import FilterState, parse_ideas


def symbols(ideas):
    return [idea.symbol for idea in ideas]


@pytest.fixture
def scenario(posted):
    return parse_ideas(
        [
            {
                "id": 1,
                "symbol": "AAPL",
                "assetType": "stock",
                "outcomeStatus": "open",
                "timestamp": posted(minutes=30),
            },
            {
                "id": 2,
                "symbol": "TSLA",
                "assetType": "stock",
                "outcomeStatus": "hit_target",
                "timestamp": posted(days=2),
            },
            {
                "id": 3,
                "symbol": "BTC",
                "assetType": "crypto",
                "outcomeStatus": "open",
                "timestamp": posted(hours=5),
            },
        ]
    )


class TestBuildFeed:
    def test_default_scenario(self, scenario, now, config):
        view = build_feed(scenario, FilterState(), now=now, config=config)

        assert symbols(view.active) == ["AAPL", "BTC"]
        assert symbols(view.closed) == ["TSLA"]
        assert symbols(view.display) == ["AAPL", "BTC"]
        assert [page.label for page in view.groups] == ["stock", "crypto"]
        assert symbols(view.group("stock").ideas) == ["AAPL"]
        assert symbols(view.group("crypto").ideas) == ["BTC"]
        assert view.group("future") is None
        assert view.outcome_counts == {"active": 2, "closed": 1, "all": 3}

    def test_group_stats_include_closed_ideas(self, scenario, now, config):
        view = build_feed(scenario, FilterState(), now=now, config=config)
        stock = view.group("stock").stats
        assert stock.total == 2
        assert stock.wins == 1
        assert stock.win_rate == pytest.approx(100.0)

    def test_idempotent(self, scenario, now, config):
        state = FilterState(grade="all", sort_by="rr")
        first = build_feed(scenario, state, {"stock": 4}, now=now, config=config)
        second = build_feed(scenario, state, {"stock": 4}, now=now, config=config)
        assert first.to_dict() == second.to_dict()

    def test_all_filters_timestamp_sort(self, make_idea, posted, all_filters, now, config):
        ideas = [
            make_idea("A", timestamp=posted(hours=7)),
            make_idea("B", timestamp=posted(hours=1), outcome_status="hit_stop"),
            make_idea("C", timestamp=posted(days=3), status="draft", probability_band="F"),
            make_idea("D", timestamp=posted(minutes=5), direction="short"),
            make_idea("E", timestamp=posted(days=1), outcome_status="expired"),
        ]
        view = build_feed(ideas, all_filters.replace(sort_by="timestamp"), now=now, config=config)

        assert symbols(view.ideas) == ["D", "B", "A", "E", "C"]
        assert symbols(view.active) == ["D", "A", "C"]
        assert symbols(view.closed) == ["B", "E"]

    def test_page_state_is_clamped_in_output(self, make_idea, now):
        config = FeedConfig(page_size=5)
        ideas = [make_idea(f"S{i}") for i in range(12)]
        view = build_feed(ideas, FilterState(), {"stock": 7}, now=now, config=config)
        assert view.page_state == {"stock": 3}
        assert symbols(view.group("stock").ideas) == ["S10", "S11"]

    def test_asset_order_preference(self, scenario, now, config):
        state = FilterState(asset_order=["crypto", "stock"])
        view = build_feed(scenario, state, now=now, config=config)
        assert [page.label for page in view.groups] == ["crypto", "stock"]

    def test_input_collection_is_untouched(self, scenario, now, config):
        before = list(scenario)
        build_feed(scenario, FilterState(sort_by="timestamp"), now=now, config=config)
        assert scenario == before

    def test_badge_counts_track_display(self, scenario, now, config):
        view = build_feed(scenario, FilterState(), now=now, config=config)
        assert view.badge_counts["direction"]["all"] == len(view.display)
        assert view.badge_counts["asset_type"]["crypto"] == 1
        assert view.badge_counts["asset_type"]["stock"] == 1
        assert "search" not in view.badge_counts

    def test_asset_labels_agree_across_stages(self, make_idea, now, config):
        ideas = [
            make_idea("AAPL", asset_type="Stock"),
            make_idea("MSFT", asset_type="stock"),
            make_idea("BTC", asset_type="Crypto"),
        ]
        view = build_feed(ideas, FilterState(asset_type="STOCK"), now=now, config=config)

        assert [page.label for page in view.groups] == ["stock"]
        assert view.groups[0].total == 2
        assert view.badge_counts["asset_type"]["stock"] == 2
        assert view.badge_counts["asset_type"]["crypto"] == 1
        assert "Stock" not in view.badge_counts["asset_type"]

    def test_horizon_buckets(self, make_idea, now, config):
        ideas = [
            make_idea("TODAY", expiry_date="2026-10-16"),
            make_idea("SOON", expiry_date="2026-10-17"),
            make_idea("LATER", expiry_date="2026-10-30"),
            make_idea("UNDATED"),
        ]
        view = build_feed(ideas, FilterState(), now=now, config=config)
        buckets = view.horizon_buckets

        assert set(buckets) == {"all", *HORIZON_BUCKETS}
        assert len(buckets["all"]) == 4
        assert symbols(buckets["today"]) == ["TODAY"]
        assert symbols(buckets["1_2_days"]) == ["SOON"]
        assert symbols(buckets["this_week"]) == ["TODAY", "SOON"]
        assert symbols(buckets["beyond"]) == ["LATER"]

    def test_deduplication_is_opt_in(self, make_idea, now):
        ideas = [
            make_idea("AAPL", confidence_score=50),
            make_idea("AAPL", confidence_score=80),
            make_idea("AAPL", confidence_score=70),
        ]
        plain = build_feed(ideas, FilterState(), now=now, config=FeedConfig())
        deduped = build_feed(ideas, FilterState(), now=now, config=FeedConfig(deduplicate=True))

        assert len(plain.active) == 3
        assert [i.confidence_score for i in deduped.active] == [80, 70]

    def test_top_conviction_and_overview(self, make_idea, posted, now, config):
        ideas = [
            make_idea("AAPL", probability_band="A", confidence_score=90, timestamp=posted(hours=1)),
            make_idea("MSFT", probability_band="B+", confidence_score=71),
            make_idea("TSLA", probability_band="A+", outcome_status="hit_target"),
        ]
        view = build_feed(ideas, FilterState(), now=now, config=config)

        assert symbols(view.top_conviction) == ["AAPL"]
        assert view.overview.total == 2
        assert view.overview.today == 1
        assert view.overview.quality == 2
        assert view.overview.avg_confidence == 81

    def test_to_dict_is_json_serializable(self, scenario, now, config):
        state = FilterState(date_range="custom", custom_date="2026-10-14")
        data = build_feed(scenario, state, now=now, config=config).to_dict()

        decoded = json.loads(json.dumps(data))
        assert decoded["filter_state"]["custom_date"] == "2026-10-14"
        assert decoded["generated_at"] == now.isoformat()
        assert decoded["groups"] == []


class TestResearchFeed:
    @pytest.fixture
    def feed(self, config):
        return ResearchFeed(config=config)

    def test_search_change_resets_every_group(self, feed, make_idea, now):
        stocks = [make_idea(f"S{i:02d}") for i in range(45)]
        crypto = [make_idea(f"C{i:02d}", asset_type="crypto") for i in range(25)]
        feed.go_to_page("stock", 2)
        feed.go_to_page("crypto", 2)

        feed.update_filters(search="s")

        assert feed.page_state == {}
        view = feed.view(stocks + crypto, now=now)
        # Stock membership is unchanged by the search, yet its page still resets
        assert view.group("stock").total == 45
        assert view.group("stock").page == 1

    def test_go_to_page(self, feed, make_idea, now):
        ideas = [make_idea(f"S{i:02d}") for i in range(45)]
        feed.go_to_page("stock", 3)
        view = feed.view(ideas, now=now)
        assert view.group("stock").page == 3
        assert view.group("stock").start == 41

    def test_unchanged_filters_keep_pages(self, feed):
        feed.go_to_page("stock", 2)
        assert feed.update_filters(search="") == {}
        assert feed.page_state == {"stock": 2}

    def test_persisted_field_change_returns_diff(self, feed):
        diff = feed.update_filters(grade="all", price_tier="under25")
        assert diff == {"research_feed.grade": "all", "research_feed.price_tier": "under25"}
        assert feed.preferences.grade == "all"

    def test_non_persisted_field_returns_empty_diff(self, feed):
        assert feed.update_filters(sort_by="rr", direction="short") == {}
        assert feed.filter_state.sort_by == "rr"

    def test_preferences_seed_filter_state(self, config):
        feed = ResearchFeed(
            preferences=UserPreferences(grade="A", asset_order=["option", "stock"]),
            config=config,
        )
        assert feed.filter_state.grade == "A"
        assert feed.filter_state.asset_order == ["option", "stock"]
        assert feed.filter_state.trade_type == "all"

    def test_invalid_filter_value_raises(self, feed):
        with pytest.raises(ValidationError):
            feed.update_filters(grade="Z")
