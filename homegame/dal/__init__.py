"""Data Access Layer -- MongoDB repository classes and connection management."""

from homegame.dal.database import (
    connect_to_mongo,
    close_mongo_connection,
    ensure_indexes,
    get_database,
)
from homegame.dal.concurrency import atomic_update
from homegame.dal.games_dal import GameDAL
from homegame.dal.groups_dal import GroupDAL
from homegame.dal.invites_dal import InviteDAL
from homegame.dal.subscriptions import ListenerRegistration, SnapshotBroker, get_broker
from homegame.dal.user_events_dal import UserEventDAL
from homegame.dal.users_dal import UserDAL

__all__ = [
    # Connection management
    "connect_to_mongo",
    "close_mongo_connection",
    "ensure_indexes",
    "get_database",
    # Concurrency and change notification
    "atomic_update",
    "ListenerRegistration",
    "SnapshotBroker",
    "get_broker",
    # DAL classes
    "GameDAL",
    "GroupDAL",
    "InviteDAL",
    "UserDAL",
    "UserEventDAL",
]
