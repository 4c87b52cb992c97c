"""List planning: visibility, filters, sort fallback and pagination."""
import pytest

from content_api.access import ANONYMOUS, Caller, Role
from content_api.config import settings
from content_api.errors import ValidationFailed
from content_api.query_planner import PageRequest, PageResult, plan
from content_api.services.article_service import ARTICLES
from content_api.services.image_asset_service import IMAGE_ASSETS
from content_api.services.service_page_service import SERVICES

ADMIN = Caller(role=Role.ADMIN)
VIEWER = Caller(role=Role.USER)

BLOGS = ARTICLES.listing


@pytest.mark.parametrize("caller", [ANONYMOUS, VIEWER])
@pytest.mark.parametrize("requested", [None, "Draft", "Archived", "all", "bogus"])
def test_public_callers_only_see_public_states(caller, requested):
    raw = {} if requested is None else {"status": requested}
    query_plan = plan(raw, caller, BLOGS)
    assert query_plan.filter.statuses == ("Published",)


def test_elevated_caller_filters_by_status():
    assert plan({"status": "Draft"}, ADMIN, BLOGS).filter.statuses == ("Draft",)
    assert plan({"status": "all"}, ADMIN, BLOGS).filter.statuses is None
    assert plan({}, ADMIN, BLOGS).filter.statuses is None


def test_elevated_caller_unknown_status_is_rejected():
    with pytest.raises(ValidationFailed):
        plan({"status": "Live"}, ADMIN, BLOGS)


def test_unknown_sort_falls_back_to_default():
    query_plan = plan({"sort": "drop table"}, ANONYMOUS, BLOGS)
    assert query_plan.sort_name == "newest"
    assert query_plan.sort == BLOGS.sorts["newest"]


def test_selectable_sort():
    query_plan = plan({"sort": "views"}, ANONYMOUS, BLOGS)
    assert query_plan.sort_name == "views"
    assert query_plan.sort[0].column == "views"


@pytest.mark.parametrize(
    "raw, page, limit",
    [
        ({}, 1, 10),
        ({"page": "3", "limit": "5"}, 3, 5),
        ({"page": "0", "limit": "-2"}, 1, 10),
        ({"page": "abc", "limit": "x"}, 1, 10),
        ({"limit": "100000"}, 1, settings.MAX_PAGE_SIZE),
    ],
)
def test_page_defaults_and_clamping(raw, page, limit):
    query_plan = plan(raw, ANONYMOUS, BLOGS)
    assert query_plan.page == PageRequest(page=page, limit=limit)


def test_offset():
    assert PageRequest(page=3, limit=5).offset == 10


def test_type_specific_default_limit():
    assert plan({}, ADMIN, IMAGE_ASSETS.listing).page.limit == 20


def test_unpaginated_only_for_elevated_callers_without_limit():
    rules = SERVICES.listing
    assert plan({}, ADMIN, rules).page is None
    assert plan({"limit": "5"}, ADMIN, rules).page == PageRequest(1, 5)
    assert plan({}, ANONYMOUS, rules).page == PageRequest(1, 10)
    # Collections that do not allow it always paginate.
    assert plan({}, ADMIN, BLOGS).page is not None


def test_filters_and_search():
    query_plan = plan(
        {"category": " Guides ", "tag": "python", "search": "  async  ", "unknown": "x"},
        ANONYMOUS,
        BLOGS,
    )
    assert query_plan.filter.exact == (("category", "Guides"),)
    assert query_plan.filter.members == (("tags", "python"),)
    assert query_plan.filter.search == "async"
    assert query_plan.filter.search_fields == ("title", "description")


def test_blank_search_is_ignored():
    query_plan = plan({"search": "   "}, ANONYMOUS, BLOGS)
    assert query_plan.filter.search is None
    assert query_plan.filter.search_fields == ()


@pytest.mark.parametrize("total, limit, pages", [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (25, 5, 5)])
def test_total_pages_is_ceiling(total, limit, pages):
    result = PageResult(items=[], total_items=total, page=PageRequest(1, limit))
    assert result.total_pages == pages
    assert result.pagination() == {"current": 1, "total": pages, "totalItems": total}


def test_unpaginated_result_has_no_pagination_block():
    assert PageResult(items=[], total_items=4, page=None).pagination() is None
