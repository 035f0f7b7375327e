from types import SimpleNamespace

from automart.services.marketplace import browse, category_counts, filter_automations, slugify, sort_automations

CATALOG = [
    {"id": 1, "title": "Drip Campaign", "description": "Nurture leads", "category": ["Email Marketing"],
     "platforms": ["Mailchimp"], "features": ["Sequences"], "rating": 4.5, "profit": 300, "reviews_count": 10,
     "suggested_price": 500, "status": "Active"},
    {"id": 2, "title": "Lead Scoring", "description": "Rank prospects", "category": ["Sales", "CRM"],
     "platforms": ["HubSpot"], "features": ["Scoring"], "rating": 4.9, "profit": 800, "reviews_count": 3,
     "suggested_price": 1200, "status": "Active"},
    {"id": 3, "title": "Newsletter Builder", "description": "Weekly digest", "category": ["email  marketing"],
     "platforms": ["Zapier"], "features": ["Templates", "Email"], "rating": 3.8, "profit": 150, "reviews_count": 42,
     "suggested_price": 250, "status": "Inactive"},
    {"id": 4, "title": "Invoice Bot", "description": "Chase payments", "category": ["Finance"],
     "platforms": ["QuickBooks"], "features": ["Reminders"], "rating": 4.1, "profit": 400, "reviews_count": 8,
     "suggested_price": 700, "status": "Active"},
]


def ids(items):
    return [i["id"] for i in items]


class TestFilter:
    def test_category_slug_matches_exact_subset(self):
        result = filter_automations(CATALOG, category="email-marketing")
        assert ids(result) == [1, 3]

    def test_requested_category_is_slugified_too(self):
        assert ids(filter_automations(CATALOG, category="Email Marketing")) == [1, 3]

    def test_all_returns_everything(self):
        assert ids(filter_automations(CATALOG, category="all")) == [1, 2, 3, 4]

    def test_search_checks_title_description_platforms_features(self):
        assert ids(filter_automations(CATALOG, search="hubspot")) == [2]
        assert ids(filter_automations(CATALOG, search="DIGEST")) == [3]
        assert ids(filter_automations(CATALOG, search="reminders")) == [4]

    def test_available_only_drops_inactive(self):
        assert ids(filter_automations(CATALOG, category="email-marketing", available_only=True)) == [1]

    def test_works_on_objects(self):
        objs = [SimpleNamespace(**item, is_active=item["status"] == "Active") for item in CATALOG]
        result = filter_automations(objs, search="invoice", available_only=True)
        assert [o.id for o in result] == [4]


class TestSort:
    def test_rating_desc(self):
        assert ids(sort_automations(CATALOG, "rating")) == [2, 1, 4, 3]

    def test_profit_desc(self):
        assert ids(sort_automations(CATALOG, "profit")) == [2, 4, 1, 3]

    def test_popular(self):
        assert ids(sort_automations(CATALOG, "popular")) == [3, 1, 4, 2]

    def test_price_low_and_high(self):
        assert ids(sort_automations(CATALOG, "price-low")) == [3, 1, 4, 2]
        assert ids(sort_automations(CATALOG, "price-high")) == [2, 4, 1, 3]

    def test_newest_and_unknown_keep_input_order(self):
        assert ids(sort_automations(CATALOG, "newest")) == [1, 2, 3, 4]
        assert ids(sort_automations(CATALOG, "bogus")) == [1, 2, 3, 4]


def test_browse_filters_then_sorts():
    assert ids(browse(CATALOG, category="email-marketing", sort_by="price-low")) == [3, 1]


def test_slugify_collapses_whitespace():
    assert slugify("  Social   Media ") == "social-media"


def test_category_counts():
    counts = category_counts(CATALOG)
    assert counts["all"] == 4
    assert counts["email-marketing"] == 2
    assert counts["crm"] == 1
