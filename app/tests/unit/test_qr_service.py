# tests/unit/test_qr_service.py
import json

import pytest

from app.core.exceptions import ValidationError
from app.services.qr_service import qr_service


def test_payload_carries_produce_reference(app_ctx):
    text, payload = qr_service.build_payload({
        'chain_id': 7,
        'name': 'Tomato',
        'original_farmer_name': 'tom',
        'origin_farm': 'Sunny Acres',
    })

    assert json.loads(text) == payload
    assert payload['type'] == 'produce'
    assert payload['id'] == 7
    assert payload['version'] == '1.0'
    assert payload['farmer'] == 'tom'
    assert payload['url'] == 'http://frontend.test/HTML/customer.html?produce=7'


def test_payload_parses_back(app_ctx):
    text, _ = qr_service.build_payload({'chain_id': 9, 'name': 'Kale'})
    parsed = qr_service.parse_payload(text)
    assert parsed['id'] == 9
    assert parsed['name'] == 'Kale'


def test_bare_number_is_a_legacy_reference():
    assert qr_service.parse_payload(' 42 ') == {'type': 'produce', 'id': 42, 'legacy': True}


@pytest.mark.parametrize('text', ['not json', '{"type": "ticket", "id": 1}', '{"type": "produce"}', '[1, 2]', ''])
def test_foreign_payloads_are_rejected(text):
    with pytest.raises(ValidationError):
        qr_service.parse_payload(text)


def test_render_png():
    assert qr_service.render_png('{"type":"produce","id":1}').startswith(b'\x89PNG')


def test_store_image_writes_under_upload_folder(app_ctx):
    url = qr_service.store_image(3, '{"type":"produce","id":3}')
    assert url.startswith('http://testserver/uploads/qr-codes/')
    assert url.endswith('qr-produce-3.png')
