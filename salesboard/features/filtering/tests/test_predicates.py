"""Tests for the predicate builder."""

import random
from datetime import date, timedelta

import pytest

from salesboard.features.filtering.predicates import (
    NON_MERCHANDISE_PATTERNS,
    Operator,
    build_predicates,
    escape_like,
)
from salesboard.features.filtering.schemas import (
    DetailMode,
    Dimension,
    FilterSpec,
    Source,
)

VALUE_POOL = ["Bali", "Jakarta", "Red", "Classic", "jepit", "fashion", "C1", "QRIS", "Men"]


def random_filters(rng: random.Random) -> FilterSpec:
    """Build a FilterSpec from a random combination of filters."""
    categories = {}
    for dimension in Dimension:
        if rng.random() < 0.5:
            categories[dimension] = tuple(rng.sample(VALUE_POOL, rng.randint(1, 4)))
    start = date(2025, 1, 1) + timedelta(days=rng.randint(0, 60))
    return FilterSpec(
        date_from=start if rng.random() < 0.6 else None,
        date_to=start + timedelta(days=rng.randint(0, 30)) if rng.random() < 0.6 else None,
        categories=categories,
        search=rng.choice([None, "slide", "50%_off"]),
        exclude_non_merchandise=rng.random() < 0.8,
        mode=rng.choice(list(DetailMode)),
    )


class TestPlaceholderParity:
    """Placeholder numbering must line up with the value array."""

    @pytest.mark.parametrize("source", list(Source))
    def test_randomized_filters(self, source: Source) -> None:
        """Test placeholder count equals parameter count for random filters."""
        rng = random.Random(20250101)
        for _ in range(300):
            filters = random_filters(rng)
            start = rng.randint(1, 20)

            predicate_set = build_predicates(filters, source, start_index=start)

            placeholders = predicate_set.placeholders
            assert len(placeholders) == len(predicate_set.params)
            assert predicate_set.placeholder_count == len(predicate_set.params)
            assert placeholders == [f"p{i}" for i in range(start, predicate_set.next_index)]

    def test_composed_sets_do_not_collide(self) -> None:
        """Test chaining start indices keeps numbering unique across sets."""
        filters = FilterSpec(
            date_from=date(2025, 1, 1),
            categories={Dimension.STORE: ("A", "B"), Dimension.PAYMENT: ("QRIS",)},
        )

        sales = build_predicates(filters, Source.SALE_LINE)
        transactions = build_predicates(filters, Source.TRANSACTION, start_index=sales.next_index)

        assert sales.placeholders == ["p1", "p2", "p3"]
        assert transactions.placeholders == ["p4", "p5", "p6", "p7"]

    def test_search_binds_one_value_for_all_columns(self) -> None:
        """Test search is a single placeholder shared by its columns."""
        filters = FilterSpec(search="slide")

        predicate_set = build_predicates(filters, Source.SALE_LINE)
        search = next(p for p in predicate_set.predicates if p.dimension == "search")

        assert search.columns == ("kode", "article", "toko")
        assert search.values == ("%slide%",)
        assert predicate_set.placeholder_count == 1


class TestEmptyFilterNeutrality:
    """Empty filters produce no fragment at all."""

    @pytest.mark.parametrize("source", list(Source))
    def test_empty_filters_binds_nothing(self, source: Source) -> None:
        """Test an empty filters yields no bound predicates."""
        predicate_set = build_predicates(FilterSpec(), source)

        assert predicate_set.params == []
        assert all(p.operator is Operator.EXCLUDE for p in predicate_set.predicates)

    def test_empty_values_emit_no_in_list(self) -> None:
        """Test a dimension mapped to an empty tuple is ignored."""
        filters = FilterSpec(categories={Dimension.BRANCH: ()})

        predicate_set = build_predicates(filters, Source.SALE_LINE)

        assert "branch" not in predicate_set.dimensions
        assert not any(p.operator is Operator.IN for p in predicate_set.predicates)


class TestColumnAvailability:
    """Filters only apply to sources carrying the column."""

    def test_product_filters_skip_transaction_source(self) -> None:
        """Test series/gender/tier/color/tipe do not reach transactions."""
        filters = FilterSpec(
            categories={
                Dimension.SERIES: ("Classic",),
                Dimension.GENDER: ("Men",),
                Dimension.TIER: ("1",),
                Dimension.COLOR: ("Red",),
                Dimension.TIPE: ("jepit",),
                Dimension.STORE: ("A",),
            },
            search="slide",
        )

        predicate_set = build_predicates(filters, Source.TRANSACTION)

        assert predicate_set.dimensions == {"store"}
        assert predicate_set.needs_join is False

    def test_payment_applies_to_transactions_only(self) -> None:
        """Test payment filters are dropped for sale lines."""
        filters = FilterSpec(categories={Dimension.PAYMENT: ("QRIS",)})

        assert "payment" not in build_predicates(filters, Source.SALE_LINE).dimensions
        assert "payment" in build_predicates(filters, Source.TRANSACTION).dimensions

    def test_campaign_applies_to_promo_only(self) -> None:
        """Test campaign filters reach only the promo source."""
        filters = FilterSpec(categories={Dimension.CAMPAIGN: ("C1",)})

        promo = build_predicates(filters, Source.PROMO)
        campaign = next(p for p in promo.predicates if p.dimension == "campaign")

        assert campaign.columns == ("campaign_code",)
        assert "campaign" not in build_predicates(filters, Source.SALE_LINE).dimensions

    def test_store_maps_to_toko(self) -> None:
        """Test the store dimension binds against the toko column."""
        filters = FilterSpec(categories={Dimension.STORE: ("A", "B")})

        predicate = build_predicates(filters, Source.SALE_LINE).predicates[0]

        assert predicate.columns == ("toko",)
        assert predicate.values == ("A", "B")
        assert predicate.placeholders == ("p1", "p2")


class TestClassificationJoin:
    """Tipe filters resolve through the classification lookup."""

    def test_tipe_filter_requires_join(self) -> None:
        """Test a tipe filter on sale lines sets needs_join."""
        filters = FilterSpec(categories={Dimension.TIPE: ("jepit",)})

        predicate_set = build_predicates(filters, Source.SALE_LINE)
        tipe = next(p for p in predicate_set.predicates if p.dimension == "tipe")

        assert predicate_set.needs_join is True
        assert tipe.via_classification is True
        assert tipe.values == ("jepit",)

    def test_no_tipe_filter_no_join(self) -> None:
        """Test sale lines without a tipe filter need no join."""
        assert build_predicates(FilterSpec(), Source.SALE_LINE).needs_join is False


class TestNonMerchandiseExclusion:
    """Sale lines drop bags, gifts, vouchers, hangers and memberships."""

    def test_exclusion_is_last_and_binds_nothing(self) -> None:
        """Test the exclusion fragment closes the set without parameters."""
        filters = FilterSpec(categories={Dimension.BRANCH: ("Bali",)}, search="x")

        predicate_set = build_predicates(filters, Source.SALE_LINE)
        exclusion = predicate_set.predicates[-1]

        assert exclusion.operator is Operator.EXCLUDE
        assert exclusion.values == ()
        assert set(exclusion.columns) == set(NON_MERCHANDISE_PATTERNS)

    def test_exclusion_can_be_disabled(self) -> None:
        """Test the audit opt-out removes the exclusion."""
        filters = FilterSpec(exclude_non_merchandise=False)

        assert "non_merchandise" not in build_predicates(filters, Source.SALE_LINE).dimensions

    @pytest.mark.parametrize("source", [Source.TRANSACTION, Source.PROMO])
    def test_exclusion_only_on_sale_lines(self, source: Source) -> None:
        """Test other sources never carry the exclusion."""
        assert build_predicates(FilterSpec(), source).predicates == ()


class TestSearch:
    """Free-text search behaviour."""

    def test_search_uses_kode_besar_in_kode_besar_mode(self) -> None:
        """Test the product code column follows the detail mode."""
        filters = FilterSpec(search="slide", mode=DetailMode.KODE_BESAR)

        search = next(p for p in build_predicates(filters, Source.SALE_LINE).predicates if p.dimension == "search")

        assert search.columns == ("kode_besar", "article", "toko")

    def test_wildcards_are_escaped(self) -> None:
        """Test user-supplied LIKE wildcards match literally."""
        assert escape_like("50%_off") == "50\\%\\_off"
        assert escape_like("a\\b") == "a\\\\b"
