# tests/v1/test_notifications.py
"""Tests for notification endpoints and the unread counter."""

from fastapi import status


def test_unread_count_starts_at_zero(client, auth_token):
    response = client.get("/api/v1/notifications/unread", headers=auth_token)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"count": 0}


def test_unread_count_only_counts_own_unread(
    client, test_user, other_user, auth_token, add_notification
):
    """Test that read notifications and other users' notifications are excluded."""
    add_notification(test_user)
    add_notification(test_user)
    add_notification(test_user, read=True)
    add_notification(other_user)

    response = client.get("/api/v1/notifications/unread", headers=auth_token)

    assert response.json() == {"count": 2}


def test_unread_count_ignores_chat_messages(
    client, test_user, other_user, auth_token, add_message
):
    add_message(other_user, "hey", receiver=test_user)

    response = client.get("/api/v1/notifications/unread", headers=auth_token)

    assert response.json() == {"count": 0}


def test_list_notifications_newest_first(client, test_user, auth_token, add_notification):
    first = add_notification(test_user)
    second = add_notification(test_user)

    response = client.get("/api/v1/notifications/", headers=auth_token)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert [item["id"] for item in data] == [second.id, first.id]
    assert data[0]["type"] == "task_assigned"
    assert data[0]["data"] == {"task_title": "Review PR"}


def test_mark_notification_read(client, test_user, auth_token, add_notification):
    notification = add_notification(test_user)

    response = client.post(
        f"/api/v1/notifications/{notification.id}/read", headers=auth_token
    )

    assert response.status_code == status.HTTP_200_OK
    assert client.get("/api/v1/notifications/unread", headers=auth_token).json() == {"count": 0}


def test_cannot_mark_foreign_notification(client, other_user, auth_token, add_notification):
    notification = add_notification(other_user)

    response = client.post(
        f"/api/v1/notifications/{notification.id}/read", headers=auth_token
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_mark_all_notifications_read(
    client, test_user, other_user, auth_token, other_auth_token, add_notification
):
    """Test that read-all only touches the current user's notifications."""
    add_notification(test_user)
    add_notification(test_user)
    add_notification(other_user)

    response = client.post("/api/v1/notifications/read-all", headers=auth_token)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"updated": 2}
    assert client.get("/api/v1/notifications/unread", headers=auth_token).json() == {"count": 0}
    assert client.get(
        "/api/v1/notifications/unread", headers=other_auth_token
    ).json() == {"count": 1}
