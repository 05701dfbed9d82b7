#!/usr/bin/env python3
"""
Ciclus RD - Create the master CCO account
"""

import argparse
import sys

from loguru import logger

from ciclus_rd.backend.database import create_backend
from ciclus_rd.backend.services import UserService
from ciclus_rd.shared.auth import AuthContext
from ciclus_rd.shared.config import settings
from ciclus_rd.shared.enums import RESERVED_ADMIN_REGISTRATION, UserRole
from ciclus_rd.shared.errors import BackendWriteError, ValidationError

# Acts for the audit trail while no account exists yet
BOOTSTRAP_CONTEXT = AuthContext(
    user_id="system",
    name="Sistema",
    registration="system",
    role=UserRole.CCO,
)


def create_admin(backend, password: str, name: str = "Administrador Mestre"):
    """Create the reserved account, or reset its password when it already exists"""
    users = UserService(backend)
    existing = users.by_registration(RESERVED_ADMIN_REGISTRATION)
    if existing is None:
        return users.create(BOOTSTRAP_CONTEXT, name, RESERVED_ADMIN_REGISTRATION, password, UserRole.CCO)

    users.reset_password(BOOTSTRAP_CONTEXT, existing.id, password)
    logger.info(f"Existing admin kept, password reset: {existing.registration}")
    return existing


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create (or reset) the master CCO account")
    parser.add_argument("password", help="Password for the 'admin' login")
    parser.add_argument("--name", default="Administrador Mestre")
    args = parser.parse_args(argv)

    backend = create_backend(settings)
    try:
        user = create_admin(backend, args.password, args.name)
    except (ValidationError, BackendWriteError) as e:
        logger.error(f"Could not create admin: {e}")
        return 1
    finally:
        backend.dispose()

    logger.success(f"Admin ready: {user.registration} ({user.role.value})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
