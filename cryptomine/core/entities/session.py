import logging
from typing import List, Optional

from cryptomine.core.entities.user import User
from cryptomine.core.errors import AuthenticationError
from cryptomine.core.services.task_scheduler import TaskHandle


logger = logging.getLogger(__name__)


class SessionContext:
    """Текущий пользователь и периодические задачи, которыми владеет сессия.

    Создаётся один раз, заполняется через restore_session / sign_in / register_user
    и очищается через sign_out.
    """

    def __init__(self, user: Optional[User] = None):
        self.user = user
        self._tasks: List[TaskHandle] = []

    @property
    def tasks(self) -> List[TaskHandle]:
        return list(self._tasks)

    def bind(self, user: User) -> None:
        if self.user is not None and self.user.id != user.id:
            # задачи прежнего пользователя ему и принадлежат
            self.stop_tasks()
        self.user = user

    def require_user(self) -> User:
        if self.user is None:
            raise AuthenticationError("Not signed in")
        return self.user

    def attach_task(self, handle: TaskHandle) -> None:
        self._tasks.append(handle)

    def stop_tasks(self) -> None:
        while self._tasks:
            self._tasks.pop().stop()

    def teardown(self) -> None:
        self.stop_tasks()
        if self.user is not None:
            logger.info("Session closed for %s", self.user.id)
        self.user = None
