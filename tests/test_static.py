from pathlib import Path

STATIC_JS = Path(__file__).resolve().parent.parent / 'static' / 'js'


def test_pos_cart_does_not_inject_product_markup():
    source = (STATIC_JS / 'pos.js').read_text()
    assert 'innerHTML = `' not in source
    assert 'td.textContent = text' in source


def test_pos_search_is_scoped_to_selected_store():
    source = (STATIC_JS / 'pos.js').read_text()
    assert '&store_id=' in source
