"""
Tests for the API response envelope
"""
import pytest
from flask import Flask

from gameshelf.api_responses import handle_api_errors, not_found_response, success_response
from gameshelf.exceptions import ValidationException


@pytest.fixture
def app_context():
    with Flask(__name__).app_context():
        yield


@pytest.mark.usefixtures('app_context')
class TestEnvelope:
    """Tests for success and not-found bodies"""

    def test_success_keeps_empty_data(self):
        response, status = success_response(data=[])

        assert status == 200
        assert response.get_json() == {'code': 'SUCCESS', 'success': True, 'data': []}

    def test_not_found_names_the_resource(self):
        response, status = not_found_response('Console', 'c1')

        assert status == 404
        assert response.get_json() == {'code': 'NOT_FOUND', 'success': False, 'message': "Console 'c1' not found"}


@pytest.mark.usefixtures('app_context')
class TestHandleApiErrors:
    """Tests for the route decorator"""

    def test_value_error_is_a_bad_request(self):
        @handle_api_errors
        def view():
            raise ValueError('bad date')

        response, status = view()

        assert status == 400
        assert response.get_json()['message'] == 'bad date'

    def test_missing_file_is_not_found(self):
        @handle_api_errors
        def view():
            raise FileNotFoundError('gone.json')

        assert view()[1] == 404

    @pytest.mark.parametrize('error', [KeyError('clientId'), ValidationException('no name')])
    def test_other_errors_reach_the_app_handlers(self, error):
        @handle_api_errors
        def view():
            raise error

        with pytest.raises(type(error)):
            view()
