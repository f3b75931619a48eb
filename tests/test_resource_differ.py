"""Tests for resource and HTML diffing."""

from pagediff.models.capture import ImageResource, ResourceManifest, TextResource
from pagediff.resources.differ import diff_html, diff_images, diff_resources, unified_patch


class TestUnifiedPatch:
    def test_identical_texts_empty(self):
        assert unified_patch("a.css", "x\ny\n", "x\ny\n") == ""

    def test_headers_and_lines(self):
        patch = unified_patch("https://e.com/a.css", "a {}\nold\n", "a {}\nnew\n")
        lines = patch.splitlines()
        assert lines[0] == "--- https://e.com/a.css\tOriginal"
        assert lines[1] == "+++ https://e.com/a.css\tUpgraded"
        assert "-old" in lines
        assert "+new" in lines
        assert patch.endswith("\n")

    def test_line_ending_change_reported(self):
        patch = unified_patch("a.css", "a{}\r\nb{}\r\n", "a{}\nb{}\n")
        assert patch
        assert "-a{}\r\n" in patch
        assert "+a{}\n" in patch

    def test_missing_final_newline_marked(self):
        patch = unified_patch("app.js", "x()", "x()\n")
        lines = patch.splitlines()
        assert lines[-3:] == ["-x()", "\\ No newline at end of file", "+x()"]
        assert patch.endswith("+x()\n")

    def test_html_diff_named_comparison(self):
        patch = diff_html("<p>a</p>", "<p>b</p>")
        assert patch.startswith("--- comparison\tOriginal")
        assert diff_html("<p>a</p>", "<p>a</p>") == ""


class TestDiffResources:
    def test_changed_css_reported(self, original_manifest):
        upgraded = original_manifest.model_copy(deep=True)
        upgraded.css[0] = TextResource(url=upgraded.css[0].url, content="body {\n  color: red;\n}\n")
        result = diff_resources(original_manifest, upgraded)
        assert [d.url for d in result.css] == ["https://old.example.com/css/site.css"]
        assert "+  color: red;" in result.css[0].diff
        assert result.javascript == []

    def test_identical_manifests_empty(self, original_manifest):
        result = diff_resources(original_manifest, original_manifest)
        assert result.is_empty

    def test_urls_on_one_side_only_ignored(self, original_manifest):
        upgraded = ResourceManifest(
            css=[TextResource(url="https://new.example.com/css/site.css", content="changed")],
            javascript=[],
            images=original_manifest.images,
        )
        result = diff_resources(original_manifest, upgraded)
        assert result.css == []
        assert result.javascript == []

    def test_whitespace_only_changes_reported(self):
        original = ResourceManifest(
            css=[TextResource(url="https://e.com/a.css", content="a{}\r\nb{}\r\n")],
            javascript=[TextResource(url="https://e.com/app.js", content="x()")],
        )
        upgraded = ResourceManifest(
            css=[TextResource(url="https://e.com/a.css", content="a{}\nb{}\n")],
            javascript=[TextResource(url="https://e.com/app.js", content="x()\n")],
        )
        result = diff_resources(original, upgraded)
        assert [d.url for d in result.css] == ["https://e.com/a.css"]
        assert [d.url for d in result.javascript] == ["https://e.com/app.js"]

    def test_changed_js_reported(self, original_manifest):
        upgraded = original_manifest.model_copy(deep=True)
        upgraded.javascript[0] = TextResource(
            url="https://old.example.com/js/app.js", content="console.log('v2');\n",
        )
        result = diff_resources(original_manifest, upgraded)
        assert len(result.javascript) == 1
        assert "-console.log('v1');" in result.javascript[0].diff


class TestDiffImages:
    def test_images_matched_by_path_across_hosts(self):
        original = [ImageResource(url="https://old.example.com/img/logo.png")]
        upgraded = [ImageResource(url="https://new.example.com/img/logo.png")]
        result = diff_images(original, upgraded)
        assert result.added == []
        assert result.removed == []

    def test_added_and_removed_report_full_urls(self):
        original = [
            ImageResource(url="https://old.example.com/img/logo.png"),
            ImageResource(url="https://old.example.com/img/banner.jpg"),
        ]
        upgraded = [
            ImageResource(url="https://new.example.com/img/logo.png"),
            ImageResource(url="https://new.example.com/img/hero.webp"),
        ]
        result = diff_images(original, upgraded)
        assert result.added == ["https://new.example.com/img/hero.webp"]
        assert result.removed == ["https://old.example.com/img/banner.jpg"]

    def test_query_string_ignored(self):
        original = [ImageResource(url="https://e.com/a.png?v=1")]
        upgraded = [ImageResource(url="https://e.com/a.png?v=2")]
        result = diff_images(original, upgraded)
        assert result.added == []
        assert result.removed == []
