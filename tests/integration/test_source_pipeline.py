"""Integration tests: bundled profiles through the full source stack.

Each test builds a real ``MangaSource`` (registry, rate-limited httpx client,
crawlers, resolver) on top of an ``httpx.MockTransport``.
"""

from __future__ import annotations

import httpx
import pytest

from mangacrawl.domain.entities import CatalogEntry, PageDescriptor
from mangacrawl.domain.exceptions import HttpStatusError
from mangacrawl.interfaces.composition import build_source

pytestmark = pytest.mark.integration

TMO_LIBRARY = """
<div class="row">
  <div class="element" data-identifier="1">
    <a href="https://lectortmo.com/library/manga/1/berserk">
      <div class="thumbnail book book-thumbnail-1">
        <style>
          .book-thumbnail-1::before{background-image:url('https://otakuteca.com/c/1.jpg')}
        </style>
      </div>
      <h4 class="text-truncate" title="Berserk">Berserk</h4>
    </a>
  </div>
  <div class="element" data-identifier="2">
    <a href="https://lectortmo.com/library/manga/2/vagabond">
      <div class="thumbnail book book-thumbnail-2">
        <style>
          .book-thumbnail-2::before{background-image:url('https://otakuteca.com/c/2.jpg')}
        </style>
      </div>
      <h4 class="text-truncate" title="Vagabond">Vagabond</h4>
    </a>
  </div>
</div>
<ul class="pagination"><li class="page-item"><a class="page-link" href="?page=2">2</a></li></ul>
"""

TMO_CASCADE = """
<div class="viewer-container">
  <img class="viewer-img" data-src="https://img1.japanreader.com/uploads/ab/1.webp">
  <img class="viewer-img" data-src="https://img1.japanreader.com/uploads/ab/2.webp">
</div>
"""

TMO_PAGINATED = """
<div class="viewer-container">
  <div class="viewer-image-container">
    <img class="viewer-image" src="https://img1.japanreader.com/uploads/ab/{n}.webp">
  </div>
  <select id="viewer-pages-select">
    <option value="1">1</option><option value="2">2</option>
  </select>
</div>
"""

LECTOR_SERIES = """
<div id="chapters">
  <h4 class="text-truncate">Capítulo 1.00</h4>
  <div class="chapter-list"><ul>
    <li><div class="row">
      <div class="col-md-6 text-truncate">Scan Uno</div>
      <div class="col-2"><span class="badge badge-primary p-2">2023-05-01</span></div>
      <div class="col-2 text-right">
        <form id="fA" method="POST" action="https://lectormanga.com/view_uploads/991">
          <input type="hidden" name="_token" value="tok123">
        </form>
      </div>
    </div></li>
  </ul></div>
</div>
"""

UA_LIST_URL = "https://tachiyomiorg.github.io/user-agents/user-agents.json"
CHROME_UA = "Mozilla/5.0 (X11; Linux x86_64) Chrome/120.0.0.0 Safari/537.36"


def _redirect(location: str) -> httpx.Response:
    return httpx.Response(302, headers={"Location": location})


class TestTuMangaOnline:
    @pytest.mark.asyncio
    async def test_popular_listing(self, make_config, site_server) -> None:
        site_server.html("https://lectortmo.com/library", TMO_LIBRARY)

        async with build_source(
            make_config(), "tumangaonline", wrapped_transport=site_server.transport()
        ) as source:
            page = await source.popular()

        assert page.entries == [
            CatalogEntry(
                "/library/manga/1/berserk", "Berserk", "https://otakuteca.com/c/1.jpg"
            ),
            CatalogEntry(
                "/library/manga/2/vagabond", "Vagabond", "https://otakuteca.com/c/2.jpg"
            ),
        ]
        assert page.has_next is True

        (request,) = site_server.requests
        assert request.url.params["order_item"] == "likes_count"
        assert request.url.params["page"] == "1"
        assert "Chrome/80" in request.headers["User-Agent"]
        assert request.headers["Referer"] == "https://lectortmo.com/"

    @pytest.mark.asyncio
    async def test_listing_error_status(self, make_config, site_server) -> None:
        site_server.add("GET", "https://lectortmo.com/library", httpx.Response(503))

        async with build_source(
            make_config(), "tumangaonline", wrapped_transport=site_server.transport()
        ) as source:
            with pytest.raises(HttpStatusError) as exc_info:
                await source.popular()
        assert exc_info.value.status == 503
        assert len(site_server.requests) == 1

    @pytest.mark.asyncio
    async def test_redirect_to_cascade_viewer(self, make_config, site_server) -> None:
        site_server.add(
            "GET",
            "https://lectortmo.com/view_uploads/55",
            _redirect("https://lectortmo.com/viewer/ab/paginated"),
        )
        site_server.html("https://lectortmo.com/viewer/ab/paginated", "")
        site_server.html("https://lectortmo.com/viewer/ab/cascade", TMO_CASCADE)

        async with build_source(
            make_config(), "tumangaonline", wrapped_transport=site_server.transport()
        ) as source:
            pages = await source.pages("/view_uploads/55")

        viewer = "https://lectortmo.com/viewer/ab/cascade"
        assert pages == [
            PageDescriptor(0, viewer, "https://img1.japanreader.com/uploads/ab/1.webp"),
            PageDescriptor(1, viewer, "https://img1.japanreader.com/uploads/ab/2.webp"),
        ]
        cascade_request = site_server.requests[-1]
        assert cascade_request.headers["Referer"] == (
            "https://lectortmo.com/viewer/ab/paginated"
        )

    @pytest.mark.asyncio
    async def test_paginated_viewer_and_image_urls(
        self, make_config, site_server
    ) -> None:
        site_server.add(
            "GET",
            "https://lectortmo.com/view_uploads/55",
            _redirect("https://lectortmo.com/viewer/ab/cascade"),
        )
        site_server.html("https://lectortmo.com/viewer/ab/cascade", TMO_CASCADE)
        site_server.html(
            "https://lectortmo.com/viewer/ab/paginated", TMO_PAGINATED.format(n=1)
        )
        site_server.html(
            "https://lectortmo.com/viewer/ab/paginated/2", TMO_PAGINATED.format(n=2)
        )

        config = make_config(preferences={"render_mode": "paginated"})
        async with build_source(
            config, "tumangaonline", wrapped_transport=site_server.transport()
        ) as source:
            pages = await source.pages("/view_uploads/55")
            image = await source.image_url(pages[1])

        assert [p.page_url for p in pages] == [
            "https://lectortmo.com/viewer/ab/paginated/1",
            "https://lectortmo.com/viewer/ab/paginated/2",
        ]
        assert image == "https://img1.japanreader.com/uploads/ab/2.webp"


class TestLectorManga:
    @pytest.mark.asyncio
    async def test_chapters_then_token_form_pages(
        self, make_config, site_server
    ) -> None:
        series = "https://lectormanga.com/library/manga/7/berserk"
        site_server.html(series, LECTOR_SERIES)
        site_server.add(
            "POST",
            "https://lectormanga.com/view_uploads/991/",
            _redirect("https://lectormanga.com/viewer/5f2a/paginated"),
            prefix=True,
        )
        site_server.html("https://lectormanga.com/viewer/5f2a/paginated", "")
        site_server.html(
            "https://lectormanga.com/viewer/5f2a/cascade",
            '<img class="viewer-img" data-src="https://img.lmcdn.com/5f2a/1.jpg">',
        )

        # Lift the 1 request/second site budget to keep the test fast.
        config = make_config(
            rate_limit={"overrides": {"lectormanga.com": {"permits": 0}}}
        )
        async with build_source(
            config, "lectormanga", wrapped_transport=site_server.transport()
        ) as source:
            chapters = await source.chapters("/library/manga/7/berserk")
            pages = await source.pages(chapters[0])

        (chapter,) = chapters
        assert chapter.path == "/library/manga/7/berserk#fA"
        assert chapter.chapter_number == 1.0
        assert chapter.scanlator == "Scan Uno"
        assert [p.image_url for p in pages] == ["https://img.lmcdn.com/5f2a/1.jpg"]

        post = next(r for r in site_server.requests if r.method == "POST")
        assert post.url.path.startswith("/view_uploads/991/20")
        assert post.content == b"_token=tok123"
        assert post.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert post.headers["Referer"] == series

    @pytest.mark.asyncio
    async def test_single_scanlator_keeps_last_upload(
        self, make_config, site_server
    ) -> None:
        upload = (
            '<li><div class="row">'
            '<div class="col-md-6 text-truncate">{team}</div>'
            '<div class="col-2 text-right"><form id="{form}" method="POST" '
            'action="https://lectormanga.com/view_uploads/{form}">'
            '<input type="hidden" name="_token" value="t"></form></div>'
            "</div></li>"
        )
        site_server.html(
            "https://lectormanga.com/library/manga/9/monster",
            '<div id="chapters"><h4 class="text-truncate">Capítulo 3.00</h4>'
            '<div class="chapter-list"><ul>'
            + upload.format(team="First", form="f1")
            + upload.format(team="Last", form="f2")
            + "</ul></div></div>",
        )

        config = make_config(preferences={"dedup_mode": "one"})
        async with build_source(
            config, "lectormanga", wrapped_transport=site_server.transport()
        ) as source:
            chapters = await source.chapters("/library/manga/9/monster")

        assert [(c.scanlator, c.path) for c in chapters] == [
            ("Last", "/library/manga/9/monster#f2")
        ]


class TestMangaHub:
    @pytest.mark.asyncio
    async def test_rotated_agent_and_probed_pages(
        self, make_config, site_server
    ) -> None:
        site_server.add(
            "GET",
            UA_LIST_URL,
            httpx.Response(
                200, json={"desktop": ["Firefox/120.0", CHROME_UA], "mobile": []}
            ),
        )
        site_server.html(
            "https://mangahub.io/chapter/solo-leveling/chapter-12",
            '<div id="mangareader">'
            '<img src="https://img.mghubcdn.com/file/imghub/solo-leveling/12/1.jpg">'
            "</div>",
        )

        def head(request: httpx.Request) -> httpx.Response:
            index = int(request.url.path.rsplit("/", 1)[1].split(".")[0])
            return httpx.Response(200 if index <= 3 else 404)

        site_server.add(
            "HEAD",
            "https://img.mghubcdn.com/file/imghub/solo-leveling/12/",
            head,
            prefix=True,
        )

        config = make_config(
            rate_limit={"overrides": {"img.mghubcdn.com": {"permits": 0}}}
        )
        async with build_source(
            config, "mangahub", wrapped_transport=site_server.transport()
        ) as source:
            pages = await source.pages("/chapter/solo-leveling/chapter-12")

        assert [p.image_url for p in pages] == [
            f"https://img.mghubcdn.com/file/imghub/solo-leveling/12/{n}.jpg"
            for n in (1, 2, 3)
        ]
        assert len(site_server.to_host("tachiyomiorg.github.io")) == 1
        site_requests = site_server.to_host("mangahub.io") + site_server.to_host(
            "img.mghubcdn.com"
        )
        assert {r.headers["User-Agent"] for r in site_requests} == {CHROME_UA}

    @pytest.mark.asyncio
    async def test_unreachable_agent_list_keeps_default(
        self, make_config, site_server
    ) -> None:
        site_server.html("https://mangahub.io/popular/page/1", "<div></div>")

        config = make_config(http={"user_agent": "Fallback/1.0"})
        async with build_source(
            config, "mangahub", wrapped_transport=site_server.transport()
        ) as source:
            page = await source.popular()

        assert page.entries == []
        assert site_server.to_host("mangahub.io")[0].headers["User-Agent"] == (
            "Fallback/1.0"
        )

    @pytest.mark.asyncio
    async def test_rotation_disabled_by_config(self, make_config, site_server) -> None:
        site_server.html("https://mangahub.io/popular/page/1", "<div></div>")

        config = make_config(http={"rotate_user_agent": False})
        async with build_source(
            config, "mangahub", wrapped_transport=site_server.transport()
        ) as source:
            await source.popular()

        assert site_server.to_host("tachiyomiorg.github.io") == []
