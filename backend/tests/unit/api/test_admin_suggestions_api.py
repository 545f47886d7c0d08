"""
Unit Tests for Admin Suggestion Endpoints
"""
import pytest
from httpx import AsyncClient

from conftest import make_suggestion_payload


async def submit(client: AsyncClient, **overrides) -> dict:
    response = await client.post('/api/suggestions', json=make_suggestion_payload(**overrides))
    assert response.status_code == 201
    return response.json()


async def staff_id(client: AsyncClient, headers: dict, tracking_code: str) -> str:
    response = await client.get('/api/admin/suggestions', params={'search': tracking_code}, headers=headers)
    return response.json()['items'][0]['id']


async def ledger_actions(client: AsyncClient, action: str) -> list:
    response = await client.get(
        '/api/admin/activity-logs', params={'action': action, 'limit': 200},
        headers={'X-Admin-Password': 'dev-secret'},
    )
    return response.json()['items']


class TestListSuggestions:
    """Test GET /api/admin/suggestions"""

    async def test_staff_view_includes_submitter(self, client: AsyncClient, staff_headers: dict):
        created = await submit(client)

        response = await client.get('/api/admin/suggestions', headers=staff_headers)

        assert response.status_code == 200
        data = response.json()
        [item] = data['items']
        assert item['trackingCode'] == created['trackingCode']
        assert item['submitter']['yearLevel'] == '2nd Year'
        assert item['isRead'] is False
        assert item['isArchived'] is False
        assert data['pagination'] == {'total': 1, 'page': 1, 'pages': 1, 'limit': 20}

    async def test_anonymous_submitter_never_exposed(self, client: AsyncClient, staff_headers: dict):
        await submit(client, isAnonymous=True)

        response = await client.get('/api/admin/suggestions', headers=staff_headers)

        [item] = response.json()['items']
        assert item['isAnonymous'] is True
        assert 'submitter' not in item

    async def test_filters_and_pagination(self, client: AsyncClient, staff_headers: dict):
        for _ in range(3):
            await submit(client, category='academic')
        await submit(client, category='general')

        response = await client.get(
            '/api/admin/suggestions',
            params={'category': 'academic', 'page': 2, 'limit': 2},
            headers=staff_headers,
        )

        data = response.json()
        assert len(data['items']) == 1
        assert data['pagination'] == {'total': 3, 'page': 2, 'pages': 2, 'limit': 2}

    async def test_limit_is_clamped(self, client: AsyncClient, staff_headers: dict):
        response = await client.get('/api/admin/suggestions', params={'limit': 1000}, headers=staff_headers)

        assert response.json()['pagination']['limit'] == 100

    async def test_invalid_filter_value(self, client: AsyncClient, staff_headers: dict):
        response = await client.get('/api/admin/suggestions', params={'status': 'done'}, headers=staff_headers)

        assert response.status_code == 400
        assert response.json()['errors'][0]['field'] == 'status'

    async def test_invalid_date(self, client: AsyncClient, staff_headers: dict):
        response = await client.get(
            '/api/admin/suggestions', params={'dateFrom': 'last week'}, headers=staff_headers
        )

        assert response.status_code == 400
        assert response.json()['errors'][0]['field'] == 'dateFrom'

    async def test_unknown_sort_falls_back_to_newest(self, client: AsyncClient, staff_headers: dict):
        first = await submit(client)
        second = await submit(client)

        response = await client.get('/api/admin/suggestions', params={'sort': 'random'}, headers=staff_headers)

        codes = [i['trackingCode'] for i in response.json()['items']]
        assert set(codes) == {first['trackingCode'], second['trackingCode']}


class TestGetSuggestion:

    async def test_get_logs_view(self, client: AsyncClient, suggestion_id: str, staff_headers: dict):
        response = await client.get(f'/api/admin/suggestions/{suggestion_id}', headers=staff_headers)

        assert response.status_code == 200
        assert response.json()['id'] == suggestion_id
        [entry] = await ledger_actions(client, 'view_suggestion')
        assert entry['suggestionId'] == suggestion_id

    async def test_get_missing(self, client: AsyncClient, staff_headers: dict):
        response = await client.get('/api/admin/suggestions/missing-id', headers=staff_headers)

        assert response.status_code == 404


class TestUpdateStatus:

    async def test_update_status(self, client: AsyncClient, suggestion_id: str, staff_headers: dict):
        response = await client.put(
            f'/api/admin/suggestions/{suggestion_id}/status',
            json={'status': 'forwarded', 'notes': 'Sent to the dean'},
            headers=staff_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data['oldStatus'] == 'submitted'
        assert data['status'] == 'forwarded'
        [entry] = data['statusHistory']
        assert entry['changedBy'] == 'Executive'
        assert entry['notes'] == 'Sent to the dean'

        [log] = await ledger_actions(client, 'update_status')
        assert log['details'] == {'oldStatus': 'submitted', 'newStatus': 'forwarded', 'notes': 'Sent to the dean'}

    async def test_response_is_the_updated_suggestion(
        self, client: AsyncClient, created_suggestion: dict, suggestion_id: str, staff_headers: dict
    ):
        first = await client.put(
            f'/api/admin/suggestions/{suggestion_id}/status',
            json={'status': 'under_review'}, headers=staff_headers,
        )
        second = await client.put(
            f'/api/admin/suggestions/{suggestion_id}/status',
            json={'status': 'resolved', 'notes': 'done'}, headers=staff_headers,
        )

        data = second.json()
        assert data['id'] == suggestion_id
        assert data['trackingCode'] == created_suggestion['trackingCode']
        assert data['status'] == 'resolved'
        assert data['oldStatus'] == 'under_review'
        assert len(data['statusHistory']) == len(first.json()['statusHistory']) + 1
        assert first.json()['statusHistory'][0]['notes'] == ''

    async def test_invalid_status(self, client: AsyncClient, suggestion_id: str, staff_headers: dict):
        response = await client.put(
            f'/api/admin/suggestions/{suggestion_id}/status', json={'status': 'closed'}, headers=staff_headers
        )

        assert response.status_code == 400

    async def test_notes_too_long(self, client: AsyncClient, suggestion_id: str, staff_headers: dict):
        response = await client.put(
            f'/api/admin/suggestions/{suggestion_id}/status',
            json={'status': 'resolved', 'notes': 'x' * 501},
            headers=staff_headers,
        )

        assert response.status_code == 400
        assert response.json()['errors'][0]['field'] == 'notes'

    async def test_missing_suggestion(self, client: AsyncClient, staff_headers: dict):
        response = await client.put(
            '/api/admin/suggestions/missing-id/status', json={'status': 'resolved'}, headers=staff_headers
        )

        assert response.status_code == 404


class TestUpdatePriority:

    async def test_update_priority(self, client: AsyncClient, suggestion_id: str, staff_headers: dict):
        response = await client.put(
            f'/api/admin/suggestions/{suggestion_id}/priority', json={'priority': 'urgent'}, headers=staff_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data['oldPriority'] == 'high'
        assert data['priority'] == 'urgent'
        assert data['aiPriorityReason'] == 'Affects many students'
        [log] = await ledger_actions(client, 'update_priority')
        assert log['details'] == {'oldPriority': 'high', 'newPriority': 'urgent'}


class TestMarkRead:

    async def test_first_read_only_logged_once(self, client: AsyncClient, suggestion_id: str, staff_headers: dict):
        first = await client.put(f'/api/admin/suggestions/{suggestion_id}/read', headers=staff_headers)
        second = await client.put(
            f'/api/admin/suggestions/{suggestion_id}/read', headers={'X-Admin-Password': 'press-secret'}
        )

        assert first.status_code == 200
        assert second.json()['readBy'] == 'Executive'
        assert second.json()['readAt'] == first.json()['readAt']
        assert len(await ledger_actions(client, 'mark_read')) == 1


class TestArchive:

    async def test_toggle(self, client: AsyncClient, suggestion_id: str, staff_headers: dict):
        archived = await client.put(f'/api/admin/suggestions/{suggestion_id}/archive', headers=staff_headers)

        assert archived.json()['wasArchivedBefore'] is False
        assert archived.json()['archivedBy'] == 'Executive'

        listing = await client.get('/api/admin/suggestions/archived', headers=staff_headers)
        assert [i['id'] for i in listing.json()['items']] == [suggestion_id]
        active = await client.get('/api/admin/suggestions', headers=staff_headers)
        assert active.json()['items'] == []

        restored = await client.put(f'/api/admin/suggestions/{suggestion_id}/archive', headers=staff_headers)
        assert restored.json()['wasArchivedBefore'] is True
        assert restored.json()['isArchived'] is False

        assert len(await ledger_actions(client, 'archive_suggestion')) == 1
        assert len(await ledger_actions(client, 'unarchive_suggestion')) == 1


class TestDelete:

    async def test_delete(self, client: AsyncClient, created_suggestion: dict, suggestion_id: str, staff_headers: dict):
        response = await client.delete(f'/api/admin/suggestions/{suggestion_id}', headers=staff_headers)

        assert response.status_code == 200
        assert response.json()['trackingCode'] == created_suggestion['trackingCode']
        track = await client.get(f"/api/suggestions/track/{created_suggestion['trackingCode']}")
        assert track.status_code == 404

        [log] = await ledger_actions(client, 'delete_suggestion')
        assert log['suggestionTrackingCode'] == created_suggestion['trackingCode']

    async def test_delete_missing(self, client: AsyncClient, staff_headers: dict):
        response = await client.delete('/api/admin/suggestions/missing-id', headers=staff_headers)

        assert response.status_code == 404

    async def test_bulk_delete_skips_missing(self, client: AsyncClient, staff_headers: dict):
        ids = []
        for _ in range(2):
            created = await submit(client)
            ids.append(await staff_id(client, staff_headers, created['trackingCode']))

        response = await client.post(
            '/api/admin/suggestions/bulk-delete', json={'ids': ids + ['missing-id']}, headers=staff_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data['deletedCount'] == 2
        assert {s['id'] for s in data['deletedSuggestions']} == set(ids)

        [log] = await ledger_actions(client, 'bulk_delete')
        assert log['details']['count'] == 2
        assert len(log['details']['deletedSuggestions']) == 2

    async def test_bulk_delete_requires_ids(self, client: AsyncClient, staff_headers: dict):
        response = await client.post('/api/admin/suggestions/bulk-delete', json={'ids': []}, headers=staff_headers)

        assert response.status_code == 400


class TestStats:

    async def test_stats(self, client: AsyncClient, staff_headers: dict):
        await submit(client, category='academic')
        await submit(client, category='extracurricular', isAnonymous=True)

        response = await client.get('/api/admin/stats', headers=staff_headers)

        assert response.status_code == 200
        data = response.json()
        assert data['total'] == 2
        assert data['byCategory']['extracurricular'] == 1
        assert data['anonymousCount'] == 1
        assert data['identifiedCount'] == 1
        assert data['unreadCount'] == 2
        assert data['deletedCount'] == 0

    @pytest.mark.parametrize('path', ['/api/admin/stats', '/api/admin/suggestions/archived'])
    async def test_requires_staff(self, client: AsyncClient, path: str):
        response = await client.get(path)

        assert response.status_code == 401
