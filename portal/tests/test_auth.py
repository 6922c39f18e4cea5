import pytest
from django.urls import reverse

from portal.models import AuditEvent, User

pytestmark = pytest.mark.django_db


def test_login_returns_jwt_and_legacy_token(api_client, make_user):
    make_user('u_jwt', role='student')
    r = api_client.post(reverse('login_view'), {'username': 'u_jwt', 'password': 'P@ssw0rd1'}, format='json')
    assert r.status_code == 200
    assert r.data['ok'] is True
    assert r.data['token']
    assert r.data['jwt_access'] and r.data['jwt_refresh']
    assert r.data['user']['role'] == 'student'


def test_login_accepts_email(api_client, make_user):
    make_user('mail_user', email='Mail.User@uni.test')
    r = api_client.post(reverse('login_view'), {'username': 'mail.user@uni.test', 'password': 'P@ssw0rd1'},
                        format='json')
    assert r.status_code == 200
    assert r.data['user']['username'] == 'mail_user'


def test_wrong_password_is_rejected_and_audited(api_client, make_user):
    make_user('u1')
    r = api_client.post(reverse('login_view'), {'username': 'u1', 'password': 'nope'}, format='json')
    assert r.status_code == 400
    assert r.data['ok'] is False
    assert r.data['error']['message'] == 'Invalid credentials'
    assert AuditEvent.objects.filter(action='login', detail__result='fail').exists()


def test_deactivated_account_gets_403(api_client, make_user):
    make_user('gone', is_active=False)
    r = api_client.post(reverse('login_view'), {'username': 'gone', 'password': 'P@ssw0rd1'}, format='json')
    assert r.status_code == 403


def test_no_role_bypass_in_login(api_client, make_user):
    u = make_user('u2')
    r = api_client.post(reverse('login_view'), {'username': 'u2', 'password': 'P@ssw0rd1', 'role': 'admin'},
                        format='json')
    assert r.status_code == 200
    u.refresh_from_db()
    assert u.role == 'student'


def test_register_creates_student_with_generated_id(api_client):
    payload = {
        'email': 'New.Student@uni.test',
        'password': 'Sup3rSecret!',
        'firstName': 'New',
        'lastName': '<b>Student</b>',
        'role': 'admin',
        'level': 100,
        'gender': 'male',
    }
    r = api_client.post(reverse('register_view'), payload, format='json')
    assert r.status_code == 201
    user = User.objects.get(email='new.student@uni.test')
    assert user.role == 'student'
    assert user.last_name == 'Student'
    assert user.student_id.startswith('ST/')
    assert r.data['token'] and r.data['jwt_access']


def test_register_duplicate_email_conflicts(api_client, make_user):
    make_user('taken', email='taken@uni.test')
    r = api_client.post(reverse('register_view'), {
        'email': 'taken@uni.test', 'password': 'Sup3rSecret!', 'firstName': 'A', 'lastName': 'B',
    }, format='json')
    assert r.status_code == 409


def test_token_header_authenticates(api_client, make_user):
    make_user('hdr')
    r = api_client.post(reverse('login_view'), {'username': 'hdr', 'password': 'P@ssw0rd1'}, format='json')
    api_client.credentials(HTTP_AUTHORIZATION=f"Token {r.data['token']}")
    me = api_client.get(reverse('me_view'))
    assert me.status_code == 200
    assert me.data['data']['username'] == 'hdr'


def test_bearer_jwt_authenticates(api_client, make_user):
    make_user('bearer')
    r = api_client.post(reverse('login_view'), {'username': 'bearer', 'password': 'P@ssw0rd1'}, format='json')
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['jwt_access']}")
    assert api_client.get(reverse('me_view')).status_code == 200


def test_anonymous_request_is_unauthorized(api_client):
    r = api_client.get(reverse('me_view'))
    assert r.status_code == 401
    assert r.data['ok'] is False


def test_refresh_and_logout_blacklists_token(api_client, make_user):
    make_user('jwt2')
    login = api_client.post(reverse('login_view'), {'username': 'jwt2', 'password': 'P@ssw0rd1'}, format='json')
    refresh = login.data['jwt_refresh']

    r = api_client.post(reverse('jwt_refresh_view'), {'refresh': refresh}, format='json')
    assert r.status_code == 200
    assert r.data['jwt_access']

    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.data['jwt_access']}")
    out = api_client.post(reverse('jwt_logout_view'), {'refresh': refresh}, format='json')
    assert out.status_code == 200
    assert out.data['blacklisted'] == 1

    again = api_client.post(reverse('jwt_refresh_view'), {'refresh': refresh}, format='json')
    assert again.status_code == 401


def test_healthz(api_client):
    r = api_client.get('/healthz')
    assert r.status_code == 200
