"""
Unit Tests for Activity Log Endpoints
"""
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.activity_log import ActivityLog


async def seed_deprecated(db: AsyncSession):
    db.add_all([
        ActivityLog(admin_role='president', admin_label='President', action='login'),
        ActivityLog(admin_role='executive_admin', admin_label='Executive Admin', action='update_status'),
    ])
    await db.commit()


class TestListActivityLogs:

    async def test_filters(self, client: AsyncClient, staff_headers: dict):
        await client.post('/api/admin/verify', json={'password': 'exec-secret'})
        await client.post('/api/admin/verify', json={'password': 'dev-secret'})
        await client.post('/api/admin/logout', headers=staff_headers)

        by_role = await client.get(
            '/api/admin/activity-logs', params={'adminRole': 'developer'}, headers=staff_headers
        )
        by_action = await client.get(
            '/api/admin/activity-logs', params={'action': 'logout'}, headers=staff_headers
        )
        by_search = await client.get(
            '/api/admin/activity-logs', params={'search': 'execut'}, headers=staff_headers
        )

        assert [e['action'] for e in by_role.json()['items']] == ['login']
        assert [e['adminLabel'] for e in by_action.json()['items']] == ['Executive']
        assert by_search.json()['pagination']['total'] == 2

    async def test_default_and_max_page_size(self, client: AsyncClient, staff_headers: dict):
        default = await client.get('/api/admin/activity-logs', headers=staff_headers)
        clamped = await client.get('/api/admin/activity-logs', params={'limit': 999}, headers=staff_headers)

        assert default.json()['pagination']['limit'] == 50
        assert clamped.json()['pagination']['limit'] == 200
        assert default.json()['pagination']['pages'] == 0


class TestActivityStats:

    async def test_stats(self, client: AsyncClient, staff_headers: dict):
        await client.post('/api/admin/verify', json={'password': 'exec-secret'})
        await client.post('/api/admin/verify', json={'password': 'exec-secret'})
        await client.post('/api/admin/verify', json={'password': 'dev-secret'})

        response = await client.get('/api/admin/activity-logs/stats', headers=staff_headers)

        assert response.status_code == 200
        data = response.json()
        assert data['totalLogs'] == 3
        assert data['byAdmin'][0] == {'role': 'executive', 'label': 'Executive', 'count': 2}
        assert data['byAction'] == [{'action': 'login', 'count': 3}]
        assert data['todayCount'] <= data['weekCount'] == 3


class TestDeprecatedMaintenance:

    async def test_count_requires_privileged_role(self, client: AsyncClient, staff_headers: dict):
        response = await client.get('/api/admin/activity-logs/deprecated-count', headers=staff_headers)

        assert response.status_code == 403
        assert 'developer' in response.json()['message']

    async def test_cleanup_requires_privileged_role(self, client: AsyncClient, staff_headers: dict):
        response = await client.delete('/api/admin/activity-logs/cleanup', headers=staff_headers)

        assert response.status_code == 403

    async def test_count_and_cleanup(self, client: AsyncClient, db_session: AsyncSession, developer_headers: dict):
        await seed_deprecated(db_session)
        await client.post('/api/admin/verify', json={'password': 'exec-secret'})

        count = await client.get('/api/admin/activity-logs/deprecated-count', headers=developer_headers)
        assert count.status_code == 200
        assert count.json()['count'] == 2
        assert 'president' in count.json()['deprecatedRoles']

        cleanup = await client.delete('/api/admin/activity-logs/cleanup', headers=developer_headers)
        assert cleanup.status_code == 200
        assert cleanup.json()['deletedCount'] == 2

        remaining = await client.get('/api/admin/activity-logs', headers=developer_headers)
        assert [e['adminRole'] for e in remaining.json()['items']] == ['executive']
