"""State of the change-owner dialog: user search and the bulk owner change."""

from reflex_list_view.debounce import Debouncer
from reflex_list_view.errors import extract_error_message
from reflex_list_view.models import DirectoryUser, OwnerChangeResult
from reflex_list_view.services import DirectoryService, OwnerService

MIN_USER_SEARCH_LENGTH: int = 2


class OwnerChangeDialog:
    """Dialog state for picking a new owner and submitting the change.

    The user search is debounced and only issued for at least
    :data:`MIN_USER_SEARCH_LENGTH` characters; shorter input clears the
    results immediately.
    """

    def __init__(
        self,
        directory_service: DirectoryService | None,
        owner_service: OwnerService | None,
        debounce_delay: float,
    ) -> None:
        self.directory_service = directory_service
        self.owner_service = owner_service
        self.is_open: bool = False
        self.search_term: str = ""
        self.results: list[DirectoryUser] = []
        self.selected_owner: DirectoryUser | None = None
        self.is_searching: bool = False
        self.is_changing: bool = False
        self.search_debouncer = Debouncer(debounce_delay, self.search)

    @property
    def confirm_disabled(self) -> bool:
        return self.selected_owner is None or self.is_changing

    @property
    def confirm_label(self) -> str:
        return "Changing..." if self.is_changing else "Change Owner"

    def _reset(self) -> None:
        self.search_debouncer.cancel()
        self.search_term = ""
        self.results = []
        self.selected_owner = None

    def open(self) -> None:
        self._reset()
        self.is_open = True

    def close(self) -> None:
        self._reset()
        self.is_open = False
        self.is_changing = False

    def _accept_term(self, value: str | None) -> bool:
        self.search_debouncer.cancel()
        self.search_term = value or ""
        if len(self.search_term) < MIN_USER_SEARCH_LENGTH:
            self.results = []
            return False
        return True

    def handle_search_input(self, value: str | None) -> None:
        """Debounce a keystroke in the user search box."""
        if self._accept_term(value):
            self.search_debouncer.trigger(self.search_term)

    async def search_now(self, value: str | None) -> None:
        """Search immediately, for input that is already debounced."""
        if self._accept_term(value):
            await self.search(self.search_term)

    async def search(self, search_term: str) -> None:
        if self.directory_service is None:
            return
        self.is_searching = True
        try:
            users = await self.directory_service.search_users(search_term)
            selected_id = self.selected_owner.id if self.selected_owner else None
            results = [DirectoryUser.coerce(u) for u in users]
            for user in results:
                user.is_selected = user.id == selected_id
            self.results = results
        except Exception as error:
            print(f"[ListView] user search failed: {extract_error_message(error)}")
            self.results = []
        finally:
            self.is_searching = False

    def select(self, user_id: str) -> None:
        chosen = next((u for u in self.results if u.id == user_id), None)
        if chosen is None:
            return
        self.selected_owner = chosen
        for user in self.results:
            user.is_selected = user.id == user_id

    async def submit(self, record_ids: list[str]) -> OwnerChangeResult | None:
        """Send the owner change for *record_ids*.

        Returns ``None`` without calling the service when no owner is
        chosen or nothing is selected.  Transport failures are folded into
        an unsuccessful :class:`OwnerChangeResult`.
        """
        if self.selected_owner is None or not record_ids or self.owner_service is None:
            return None
        self.is_changing = True
        try:
            response = await self.owner_service.change_owner(record_ids, self.selected_owner.id)
            return OwnerChangeResult.coerce(response)
        except Exception as error:
            return OwnerChangeResult(success=False, error_message=extract_error_message(error))
        finally:
            self.is_changing = False
