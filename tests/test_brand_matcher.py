import json

from atm_locator import config
from atm_locator.brand import BrandMatcher, BrandProfile, default_profile

PROFILE = BrandProfile(
    brand="Bank of America",
    category="ATM",
    aliases=("bank of america", "bofa", "bankofamerica"),
    category_keywords=("atm",),
    context_keywords=("drive", "cash"),
    allow_context_keywords=True,
)


def test_brand_and_category_in_any_case():
    matcher = BrandMatcher(PROFILE)
    assert matcher.matches({"title": "BANK OF AMERICA", "type": "atm"})
    assert matcher.matches({"title": "Bank of America Financial Center", "description": "24h ATM"})
    assert matcher.matches({"name": "BofA", "categories": ["Bank", "ATM"]})
    assert matcher.matches({"title": "Bankofamerica atm"})


def test_missing_brand_never_matches():
    matcher = BrandMatcher(PROFILE)
    assert not matcher.matches({"title": "Chase ATM", "type": "ATM", "description": "cash drive-thru"})
    assert not matcher.matches({"title": "Wells Fargo", "categories": ["ATM"]})


def test_context_keywords_are_configurable():
    record = {"title": "Bank of America", "description": "Drive-up cash machine"}
    assert BrandMatcher(PROFILE).matches(record)

    strict = BrandProfile(
        brand=PROFILE.brand,
        category=PROFILE.category,
        aliases=PROFILE.aliases,
        category_keywords=PROFILE.category_keywords,
        context_keywords=PROFILE.context_keywords,
        allow_context_keywords=False,
    )
    assert not BrandMatcher(strict).matches(record)


def test_missing_and_odd_fields_are_empty_text():
    matcher = BrandMatcher(PROFILE)
    assert not matcher.matches({})
    assert not matcher.matches({"title": None, "categories": None, "address": 42})
    assert matcher.matches({"title": None, "address": "Bank of America ATM, 1 Main St"})


def test_tag_records_use_tags():
    matcher = BrandMatcher(PROFILE)
    element = {"type": "node", "tags": {"amenity": "atm", "operator": "Bank of America"}}
    assert matcher.matches(element)
    assert not matcher.matches({"type": "node", "tags": {"amenity": "atm", "operator": "Citibank"}})


def test_rewrite_query_injects_brand_and_category():
    assert PROFILE.rewrite_query("  times square new york ") == (
        "Bank of America ATM near times square new york"
    )


def test_default_profile_follows_config(monkeypatch):
    monkeypatch.setattr(config, "BRAND_NAME", "Chase")
    monkeypatch.setattr(config, "BRAND_ALIASES", ["Chase", "JPMorgan Chase"])
    monkeypatch.setattr(config, "ALLOW_CONTEXT_KEYWORDS", False)
    profile = default_profile()
    assert profile.brand == "Chase"
    assert profile.aliases == ("chase", "jpmorgan chase")
    assert profile.allow_context_keywords is False


def test_load_locator_config_updates_profile(tmp_path, monkeypatch):
    for name in (
        "BRAND_NAME",
        "BRAND_ALIASES",
        "CATEGORY_KEYWORDS",
        "CONTEXT_KEYWORDS",
        "ALLOW_CONTEXT_KEYWORDS",
        "CATEGORY_TAG",
        "OVERPASS_ENDPOINTS",
    ):
        monkeypatch.setattr(config, name, getattr(config, name))
    path = tmp_path / "locator_config.json"
    path.write_text(
        json.dumps(
            {
                "brand": {"name": "Chase", "aliases": ["Chase"]},
                "category": {
                    "keywords": ["atm", "cash machine"],
                    "allow_context_keywords": False,
                    "tag": "amenity=atm",
                },
                "overpass_endpoints": ["https://example.invalid/api/interpreter"],
            }
        ),
        encoding="utf-8",
    )

    assert config.load_locator_config(str(path)) is True
    profile = default_profile()
    assert profile.brand == "Chase"
    assert profile.category_keywords == ("atm", "cash machine")
    assert profile.allow_context_keywords is False
    assert config.OVERPASS_ENDPOINTS == ["https://example.invalid/api/interpreter"]


def test_load_locator_config_missing_file(tmp_path):
    assert config.load_locator_config(str(tmp_path / "absent.json")) is False
