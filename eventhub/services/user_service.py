from typing import List
from eventhub.db.models.user import Account
from eventhub.db.repositories import list_accounts as db_list_accounts
from eventhub.services.base import BaseService, translate_errors


class UserService(BaseService):
    @translate_errors("Failed to fetch users")
    async def get(self) -> List[Account]:
        """Every account with its user's public profile."""
        self.require_user()
        return await db_list_accounts(self.session)
