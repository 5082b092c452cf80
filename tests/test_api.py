"""Tests for the HTTP API over an in-memory console."""

import pytest
from fastapi.testclient import TestClient

from accounts import AccountsSnapshot, merge_accounts
from api import app
from auth import AuthManager, get_manager
from conftest import IDENTITIES, PROFILES, LISTINGS
from console import AdminConsole, get_console
from database import RemoteWriteError
from fakes import InMemoryStore
from models import Identity, Listing, Profile, parse_records

@pytest.fixture
def console():
    """Console over the sample marketplace, loaded without touching the network."""
    console = AdminConsole(InMemoryStore(IDENTITIES, PROFILES, LISTINGS))
    identities = parse_records(Identity, IDENTITIES)
    profiles = parse_records(Profile, PROFILES)
    console.state.load(
        AccountsSnapshot(merge_accounts(identities, profiles), identities, profiles),
        parse_records(Listing, LISTINGS)
    )
    return console

@pytest.fixture
def manager():
    return AuthManager('admin@example.com', 'change-me', secret='api-test-secret')

@pytest.fixture
def client(console, manager):
    """Test client with the console and auth manager overridden."""
    app.dependency_overrides[get_console] = lambda: console
    app.dependency_overrides[get_manager] = lambda: manager
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

@pytest.fixture
def headers(manager):
    token = manager.login('admin@example.com', 'change-me')['token']
    return {'Authorization': f'Bearer {token}'}

def test_root(client):
    assert client.get('/').json()['status'] == 'running'

def test_routes_require_session(client):
    response = client.get('/accounts')
    assert response.status_code in (401, 403)

def test_login_flow(client):
    bad = client.post('/auth/login', json={'email': 'admin@example.com', 'password': 'nope'})
    assert bad.status_code == 401

    response = client.post('/auth/login', json={'email': 'admin@example.com', 'password': 'change-me'})
    assert response.status_code == 200
    token = response.json()['token']
    headers = {'Authorization': f'Bearer {token}'}

    assert client.get('/auth/verify', headers=headers).json()['operator'] == 'admin@example.com'
    assert client.post('/auth/logout', headers=headers).json() == {'success': True}
    assert client.get('/auth/verify', headers=headers).status_code == 401

def test_dashboard(client, headers):
    body = client.get('/dashboard', headers=headers).json()

    assert body['total_accounts'] == 5
    assert body['sellers'] == 2
    assert body['pending_listings'] == 2
    assert [a['id'] for a in body['recent_accounts']][:2] == ['U5', 'U4']

def test_accounts_view(client, headers):
    body = client.get('/accounts', params={'q': 'dubois', 'tab': 'sellers'}, headers=headers).json()

    assert [a['id'] for a in body['rows']] == ['U1']
    assert body['rows'][0]['is_seller']
    assert body['counts'] == {'all': 5, 'users': 3, 'sellers': 2}

def test_unknown_tab_is_bad_request(client, headers):
    assert client.get('/accounts', params={'tab': 'admins'}, headers=headers).status_code == 400
    assert client.get('/listings', params={'tab': 'sold'}, headers=headers).status_code == 400

def test_seller_detail(client, headers):
    body = client.get('/sellers/U1', headers=headers).json()

    assert body['status'] == 'Pending'
    assert body['account']['email'] == 'marie.dubois@example.com'
    assert client.get('/sellers/U2', headers=headers).status_code == 404

def test_listing_views(client, headers):
    body = client.get('/listings', params={'tab': 'pending'}, headers=headers).json()

    assert [r['listing']['id'] for r in body['rows']] == ['L4', 'L1']
    assert body['rows'][1]['seller']['id'] == 'U1'
    assert client.get('/listings/L404', headers=headers).status_code == 404

def test_approve_listing(client, headers, console):
    response = client.post('/listings/L1/approve', headers=headers)

    assert response.status_code == 200
    assert response.json()['entity']['product_state'] == 'active'
    assert response.json()['notification_sent']
    assert client.post('/listings/L1/approve', headers=headers).status_code == 409
    assert client.post('/listings/L404/reject', headers=headers).status_code == 404

def test_approve_seller(client, headers, console):
    response = client.post('/sellers/U1/approve', headers=headers)

    assert response.status_code == 200
    assert response.json()['entity']['user_role'] == 'seller_verified'
    assert client.get('/sellers/U1', headers=headers).json()['status'] == 'Verified'

def test_store_failure_is_bad_gateway(client, headers, console):
    console.store.update_errors['profiles'] = RemoteWriteError("permission denied")

    response = client.post('/sellers/U1/reject', headers=headers)

    assert response.status_code == 502
    assert 'permission denied' in response.json()['detail']
