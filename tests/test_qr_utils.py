"""
Tests for QR code encoding and check-in payload validation
"""
import json
import time

from campus_events.qr_utils import (CHECKIN_TYPE, certificate_verification_url, generate_certificate_qr,
                                    generate_checkin_qr, generate_team_qr, parse_qr_data, render_qr,
                                    team_join_url, validate_checkin_qr)

HOUR_MS = 60 * 60 * 1000


def now_ms():
    return int(time.time() * 1000)


def checkin_payload(**overrides):
    payload = {'type': CHECKIN_TYPE, 'registrationId': '7', 'eventId': '3', 'timestamp': now_ms()}
    payload.update(overrides)
    return payload


class TestEncoding:

    def test_render_qr_returns_png_and_data_url(self):
        png, data_url = render_qr('hello', size=120)
        assert png.startswith(b'\x89PNG')
        assert data_url.startswith('data:image/png;base64,')

    def test_checkin_qr_payload(self):
        qr = generate_checkin_qr(7, 3, timestamp=1700000000000)
        assert json.loads(qr['code']) == {
            'type': 'event-checkin',
            'registrationId': '7',
            'eventId': '3',
            'timestamp': 1700000000000,
        }
        assert qr['data_url'].startswith('data:image/png;base64,')

    def test_checkin_qr_defaults_to_current_time(self):
        before = now_ms()
        qr = generate_checkin_qr(1, 1)
        assert before <= qr['data']['timestamp'] <= now_ms()

    def test_certificate_qr_is_a_bare_verification_url(self):
        qr = generate_certificate_qr('ABCDEF123456')
        assert qr['code'] == 'http://testserver.local/verify-certificate/ABCDEF123456'
        assert qr['code'] == certificate_verification_url('ABCDEF123456')
        assert qr['png'].startswith(b'\x89PNG')

    def test_team_qr_is_a_join_url(self):
        qr = generate_team_qr('TEAM-ABC123')
        assert qr['code'] == team_join_url('TEAM-ABC123') == 'http://testserver.local/join-team/TEAM-ABC123'


class TestParsing:

    def test_json_payload(self):
        result = parse_qr_data(json.dumps(checkin_payload()))
        assert result['success'] is True
        assert result['type'] == CHECKIN_TYPE

    def test_falls_back_to_url(self):
        result = parse_qr_data('http://testserver.local/join-team/TEAM-1')
        assert result == {'success': True, 'data': {'url': 'http://testserver.local/join-team/TEAM-1'},
                          'type': 'url'}

    def test_json_scalar_is_rejected(self):
        assert parse_qr_data('42')['success'] is False


class TestCheckinValidation:

    def test_valid_payload(self):
        result = validate_checkin_qr(checkin_payload(), 3)
        assert result == {'valid': True, 'registration_id': '7', 'event_id': '3'}

    def test_wrong_type(self):
        result = validate_checkin_qr(checkin_payload(type='certificate'), 3)
        assert result['valid'] is False
        assert result['reason'] == 'qr_invalid_type'

    def test_wrong_event(self):
        result = validate_checkin_qr(checkin_payload(eventId='4'), 3)
        assert result['reason'] == 'qr_wrong_event'
        assert result['message'] == 'QR code is for a different event'

    def test_expired(self):
        result = validate_checkin_qr(checkin_payload(timestamp=now_ms() - 25 * HOUR_MS), 3)
        assert result['reason'] == 'qr_expired'

    def test_just_inside_the_window(self):
        current = now_ms()
        payload = checkin_payload(timestamp=current - 24 * HOUR_MS)
        assert validate_checkin_qr(payload, 3, now_ms=current)['valid'] is True

    def test_type_is_checked_before_event_and_age(self):
        payload = checkin_payload(type='other', eventId='99', timestamp=0)
        assert validate_checkin_qr(payload, 3)['reason'] == 'qr_invalid_type'

    def test_event_is_checked_before_age(self):
        payload = checkin_payload(eventId='99', timestamp=0)
        assert validate_checkin_qr(payload, 3)['reason'] == 'qr_wrong_event'

    def test_not_a_mapping(self):
        assert validate_checkin_qr(None, 3)['reason'] == 'qr_invalid_format'
        assert validate_checkin_qr(['event-checkin'], 3)['reason'] == 'qr_invalid_format'

    def test_non_numeric_timestamp(self):
        assert validate_checkin_qr(checkin_payload(timestamp='yesterday'), 3)['reason'] == 'qr_invalid_format'
