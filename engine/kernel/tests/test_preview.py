"""
Tweak Kernel — Preview Renderer Tests

render(structure, values) → RenderNode tree, then HTML.

Each element renders as a wrapper (margin family) around a primitive or
basic tag (everything else). Values come from the value map, falling back to
the extracted defaults.
"""

from engine.kernel.extractor import extract
from engine.kernel.preview import (
    ROOT_CLASS,
    WRAPPER_CLASS,
    render,
    render_html,
    render_preview_page,
)
from engine.kernel.types import CompiledComponent, RenderNode, SandboxError


def component(body: str) -> str:
    return f"export default function Demo() {{\n  return (\n    {body}\n  )\n}}\n"


def rendered(body: str, values=None) -> RenderNode:
    return render(extract(component(body)), values or {})


def primitive(tree: RenderNode, element_id: str) -> RenderNode:
    """The node inside the wrapper rendered for `element_id`."""
    wrapper = tree.find(element_id)
    assert wrapper is not None, f"no wrapper for {element_id}"
    return wrapper.children[0]


def assert_contains(html, *fragments):
    for fragment in fragments:
        assert fragment in html, f"Expected to find {fragment!r} in:\n{html[:2000]}"


# ============================================================================
# Tree shape
# ============================================================================


class TestTreeShape:
    def test_root_and_wrappers(self, hero_source):
        tree = render(extract(hero_source))
        assert tree.props["className"] == ROOT_CLASS
        assert len(tree.children) == 1
        wrapper = tree.children[0]
        assert wrapper.element_id == "section-0"
        assert wrapper.props["data-element-id"] == "section-0"
        assert wrapper.props["className"] == WRAPPER_CLASS

    def test_children_nest_inside_primitives(self, hero_source):
        tree = render(extract(hero_source))
        section = primitive(tree, "section-0")
        assert section.component == "section"
        assert [c.element_id for c in section.children] == ["h1-0_0", "p-0_1", "button-0_2"]

    def test_deterministic(self, hero_source):
        structure = extract(hero_source)
        values = {"h1-0_0.fontSize": "20"}
        assert render(structure, values) == render(structure, values)


# ============================================================================
# Values
# ============================================================================


class TestValues:
    def test_defaults_become_classes(self, hero_source):
        h1 = primitive(render(extract(hero_source)), "h1-0_0")
        assert h1.props["className"] == "text-4xl font-bold"
        assert h1.children == ["Welcome"]

    def test_value_map_overrides_default(self, hero_source):
        tree = render(extract(hero_source), {"h1-0_0.text": "Hello", "h1-0_0.fontWeight": "font-light"})
        h1 = primitive(tree, "h1-0_0")
        assert h1.children == ["Hello"]
        assert "font-light" in h1.props["className"]
        assert "font-bold" not in h1.props["className"]

    def test_bare_number_gets_px(self):
        p = primitive(rendered('<p className="text-sm">x</p>', {"p-0.fontSize": "16"}), "p-0")
        assert p.style["fontSize"] == "16px"
        assert "text-[16px]" in p.props["className"]

    def test_units_pass_through(self):
        p = primitive(rendered('<p className="text-sm">x</p>', {"p-0.fontSize": "1.5rem"}), "p-0")
        assert p.style["fontSize"] == "1.5rem"

    def test_scale_tokens_have_no_inline_style(self):
        p = primitive(rendered('<p className="text-sm">x</p>', {"p-0.fontSize": "text-lg"}), "p-0")
        assert "fontSize" not in p.style
        assert "text-lg" in p.props["className"]

    def test_arbitrary_color(self):
        div = primitive(rendered("<div>x</div>", {"div-0.backgroundColor": "#0ea5e9"}), "div-0")
        assert div.style["backgroundColor"] == "#0ea5e9"
        assert "bg-[#0ea5e9]" in div.props["className"]

    def test_false_attribute_is_dropped(self):
        field = primitive(rendered("<input disabled />", {"input-0.disabled": False}), "input-0")
        assert "disabled" not in field.props


class TestBorderRule:
    def test_width_without_color_renders_solid_current_color(self):
        div = primitive(rendered("<div>x</div>", {"div-0.borderWidth": "2"}), "div-0")
        assert div.style["borderWidth"] == "2px"
        assert div.style["borderColor"] == "currentColor"
        assert div.style["borderStyle"] == "solid"

    def test_scale_width_from_source(self):
        div = primitive(rendered('<div className="border">x</div>'), "div-0")
        assert div.style["borderColor"] == "currentColor"
        assert div.style["borderStyle"] == "solid"

    def test_explicit_color_wins(self):
        div = primitive(rendered('<div className="border-2 border-red-500">x</div>'), "div-0")
        assert "borderColor" not in div.style
        assert "border-red-500" in div.props["className"]

    def test_zero_width_has_no_border(self):
        div = primitive(rendered("<div>x</div>", {"div-0.borderWidth": "0"}), "div-0")
        assert "borderColor" not in div.style


class TestMargins:
    def test_margin_token_goes_to_wrapper(self):
        tree = rendered("<div>x</div>", {"div-0.margin": "m-4"})
        wrapper = tree.find("div-0")
        assert wrapper.props["className"] == f"{WRAPPER_CLASS} m-4"
        assert "m-4" not in primitive(tree, "div-0").props.get("className", "")

    def test_margin_number_goes_to_wrapper_style(self):
        tree = rendered("<div>x</div>", {"div-0.margin": "12"})
        assert tree.find("div-0").style["margin"] == "12px"
        assert "margin" not in primitive(tree, "div-0").style


class TestOverrides:
    def test_unmodeled_style_key_is_applied(self):
        div = primitive(rendered("<div>x</div>", {"div-0.width": "320px"}), "div-0")
        assert div.style["width"] == "320px"
        assert "w-[320px]" in div.props["className"]

    def test_non_style_keys_are_ignored(self):
        div = primitive(rendered("<div>x</div>", {"div-0.tooltip": "hi"}), "div-0")
        assert "tooltip" not in div.props
        assert div.style == {}

    def test_canvas_values(self):
        tree = rendered("<div>x</div>", {"width": 800, "maxWidth": "100%"})
        assert tree.style == {"width": "800px", "maxWidth": "100%"}


# ============================================================================
# Primitives
# ============================================================================


class TestPrimitives:
    def test_button(self, hero_source):
        button = primitive(render(extract(hero_source)), "button-0_2")
        assert button.component == "Button"
        assert button.props["variant"] == "outline"
        assert button.props["size"] == "lg"
        assert button.children == ["Get started"]

    def test_empty_button_gets_placeholder_text(self):
        button = primitive(rendered("<Button />"), "button-0")
        assert button.children == ["Click me"]
        assert button.props["variant"] == "default"

    def test_input_defaults(self):
        field = primitive(rendered("<Input />"), "input-0")
        assert field.component == "Input"
        assert field.props["type"] == "text"
        assert field.props["placeholder"] == "Enter text..."

    def test_card_gets_default_header(self):
        card = primitive(rendered("<Card />"), "card-0")
        assert card.component == "Card"
        assert card.children[0].component == "CardHeader"

    def test_dialog_wraps_children_in_content(self):
        dialog = primitive(rendered("<Dialog><p>Hi</p></Dialog>"), "dialog-0")
        assert [c.component for c in dialog.children] == ["DialogTrigger", "DialogContent"]

    def test_unknown_type_renders_placeholder(self):
        node = primitive(rendered("<textarea rows={3} />"), "textarea-0")
        assert node.children == ["Unknown element: textarea"]


# ============================================================================
# HTML and pages
# ============================================================================


class TestHtml:
    def test_render_html(self, hero_source):
        html = render_html(render(extract(hero_source)))
        assert_contains(
            html,
            f'<div class="{ROOT_CLASS}">',
            'data-element-id="h1-0_0"',
            '<h1 class="text-4xl font-bold">Welcome</h1>',
            'data-variant="outline"',
            "<button",
        )

    def test_text_is_escaped(self):
        html = render_html(rendered("<p>x</p>", {"p-0.text": "<script>alert(1)</script>"}))
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_style_is_kebab_case(self):
        html = render_html(rendered("<div>x</div>", {"div-0.backgroundColor": "#fff"}))
        assert 'style="background-color: #fff"' in html

    def test_void_tags(self):
        html = render_html(rendered('<img src="/a.png" alt="A" />'))
        assert '<img src="/a.png" alt="A" />' in html


class TestPreviewPage:
    def test_simulated_tree(self, hero_source):
        page = render_preview_page(render(extract(hero_source)), title="Hero")
        assert_contains(page, "<!DOCTYPE html>", "<title>Hero</title>", "Welcome")
        assert "tweak-error\"" not in page

    def test_compiled_markup_is_embedded(self):
        result = CompiledComponent(name="Hero", code="", scope=(), markup="<section>Live</section>")
        assert "<section>Live</section>" in render_preview_page(result)

    def test_sandbox_error_state(self):
        page = render_preview_page(SandboxError(kind="transpile", message="Unexpected token <x>"))
        assert_contains(page, 'data-error-kind="transpile"', "Syntax error", "Unexpected token &lt;x&gt;")
