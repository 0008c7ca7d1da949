"""Contract repository: where leagues, contracts and dead money live.

The core never touches storage directly. It talks to a ContractRepository,
which hands out copies of stored records and applies changes through
``update_*`` calls. Changes made inside ``transaction()`` are all-or-nothing:
if the block raises, every change made in it is rolled back. A write made
outside a transaction runs in its own transaction on that league.

Two implementations:
- InMemoryContractRepository: state in dicts, used by tests and scripts
- JsonContractRepository: one data/leagues/<league_id>.json file per league,
  committed with a single atomic file replace
"""

import copy
import dataclasses
import logging
import os
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Optional

from pydantic import ValidationError as SchemaError

from .config import get_data_dir
from .constants import STATUS_ACTIVE
from .dead_money import parse_dead_money_config
from .errors import (
    CONTRACT_NOT_FOUND,
    DUPLICATE_ACTIVE_CONTRACT,
    LEAGUE_NOT_FOUND,
    TURNOVER_IN_PROGRESS,
    ConflictError,
    NotFoundError,
    PersistenceFailure,
    ValidationError,
)
from .models import Contract, DeadMoneyRecord, League, Team
from .schemas import ContractEntry, LeagueFile, LeagueSettings
from .utils import load_json, save_json, utc_now_iso

logger = logging.getLogger('ffcm.repository')

_CONTRACT_FIELDS = {f.name for f in dataclasses.fields(Contract)}


class ContractRepository(ABC):
    """Read/write access to persisted league data."""

    @abstractmethod
    def get_league(self, league_id: str) -> League:
        """Return the league, raising NotFoundError if it does not exist."""

    @abstractmethod
    def list_contracts(self, league_id: str, status: Optional[str] = None) -> list[Contract]:
        """Contracts of a league, optionally filtered by status."""

    @abstractmethod
    def get_contract(self, league_id: str, contract_id: str) -> Contract:
        """Return one contract, raising NotFoundError if it does not exist."""

    @abstractmethod
    def list_teams(self, league_id: str) -> list[Team]:
        """Teams of a league."""

    @abstractmethod
    def list_dead_money(self, league_id: str, team_id: Optional[str] = None) -> list[DeadMoneyRecord]:
        """Dead money records of a league, optionally for one team."""

    @abstractmethod
    def add_contract(self, contract: Contract) -> Contract:
        """Store a new contract."""

    @abstractmethod
    def update_contract(self, league_id: str, contract_id: str, **changes) -> Contract:
        """Apply field changes to a contract and return the updated copy.

        Setting status ACTIVE on a contract that is not active raises
        ConflictError when the player already has an ACTIVE contract with
        the same team.
        """

    @abstractmethod
    def update_league_settings(self, league_id: str, **changes) -> League:
        """Apply changes to a league's settings and return the updated league."""

    @abstractmethod
    def add_dead_money(self, league_id: str, records: Iterable[DeadMoneyRecord]) -> None:
        """Store dead money records."""

    @abstractmethod
    def reset_tag_flags(self, league_id: str) -> int:
        """Clear has_been_tagged on every ACTIVE contract; return how many changed."""

    @abstractmethod
    def transaction(self, league_id: Optional[str] = None):
        """Context manager making every change inside it atomic."""


class InMemoryContractRepository(ContractRepository):
    """Repository keeping all state in memory.

    Transactions snapshot the whole state on entry and restore it if the
    block raises. Transactions are serialized by a re-entrant lock; a
    transaction opened inside another joins it.
    """

    def __init__(
        self,
        leagues: Iterable[League] = (),
        contracts: Iterable[Contract] = (),
        dead_money: Iterable[tuple[str, DeadMoneyRecord]] = (),
    ):
        self._leagues: dict[str, League] = {}
        self._contracts: dict[str, dict[str, Contract]] = {}
        self._dead_money: dict[str, list[DeadMoneyRecord]] = {}
        self._lock = threading.RLock()
        self._depth = 0
        self._dirty: set[str] = set()

        for league in leagues:
            self.add_league(league)
        for contract in contracts:
            self._contracts.setdefault(contract.league_id, {})[contract.id] = copy.deepcopy(contract)
        for league_id, record in dead_money:
            self._dead_money.setdefault(league_id, []).append(copy.deepcopy(record))

    def add_league(self, league: League) -> None:
        self._leagues[league.id] = copy.deepcopy(league)
        self._contracts.setdefault(league.id, {})
        self._dead_money.setdefault(league.id, [])

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def _snapshot(self) -> tuple:
        return copy.deepcopy((self._leagues, self._contracts, self._dead_money))

    def _restore(self, snapshot: tuple) -> None:
        self._leagues, self._contracts, self._dead_money = snapshot

    def _begin(self, league_id: Optional[str]) -> None:
        """Hook run before the outermost transaction takes its snapshot."""

    def _commit(self, league_ids: set[str]) -> None:
        """Hook run when the outermost transaction succeeds."""

    def _end(self, league_id: Optional[str]) -> None:
        """Hook run after the outermost transaction finishes either way."""

    @contextmanager
    def transaction(self, league_id: Optional[str] = None) -> Iterator[None]:
        with self._lock:
            if self._depth > 0:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            self._begin(league_id)
            try:
                snapshot = self._snapshot()
                self._dirty = set()
                self._depth = 1
                try:
                    yield
                    self._commit(self._dirty)
                except BaseException:
                    self._restore(snapshot)
                    logger.warning('Transaction rolled back')
                    raise
                finally:
                    self._depth = 0
                    self._dirty = set()
            finally:
                self._end(league_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _league(self, league_id: str) -> League:
        league = self._leagues.get(league_id)
        if league is None:
            raise NotFoundError(f'League not found: {league_id}', code=LEAGUE_NOT_FOUND)
        return league

    def get_league(self, league_id: str) -> League:
        return copy.deepcopy(self._league(league_id))

    def list_contracts(self, league_id: str, status: Optional[str] = None) -> list[Contract]:
        self._league(league_id)
        return [
            copy.deepcopy(c)
            for c in self._contracts.get(league_id, {}).values()
            if status is None or c.status == status
        ]

    def _contract(self, league_id: str, contract_id: str) -> Contract:
        self._league(league_id)
        contract = self._contracts.get(league_id, {}).get(contract_id)
        if contract is None:
            raise NotFoundError(f'Contract not found: {contract_id}', code=CONTRACT_NOT_FOUND)
        return contract

    def get_contract(self, league_id: str, contract_id: str) -> Contract:
        return copy.deepcopy(self._contract(league_id, contract_id))

    def list_teams(self, league_id: str) -> list[Team]:
        return copy.deepcopy(self._league(league_id).teams)

    def list_dead_money(self, league_id: str, team_id: Optional[str] = None) -> list[DeadMoneyRecord]:
        self._league(league_id)
        return [
            copy.deepcopy(r)
            for r in self._dead_money.get(league_id, [])
            if team_id is None or r.team_id == team_id
        ]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _check_no_active_duplicate(self, contract: Contract) -> None:
        """A player holds at most one ACTIVE contract per team."""
        for other in self._contracts.get(contract.league_id, {}).values():
            if (
                other.id != contract.id
                and other.status == STATUS_ACTIVE
                and other.player_id == contract.player_id
                and other.team_id == contract.team_id
            ):
                raise ConflictError(
                    f'Player {contract.player_id} already has an active contract with team '
                    f'{contract.team_id}',
                    code=DUPLICATE_ACTIVE_CONTRACT,
                )

    def add_contract(self, contract: Contract) -> Contract:
        with self.transaction(contract.league_id):
            self._league(contract.league_id)
            contracts = self._contracts.setdefault(contract.league_id, {})
            if contract.id in contracts:
                raise ConflictError(f'Contract {contract.id} already exists')
            if contract.status == STATUS_ACTIVE:
                self._check_no_active_duplicate(contract)
            contracts[contract.id] = copy.deepcopy(contract)
            self._dirty.add(contract.league_id)
        return copy.deepcopy(contract)

    def update_contract(self, league_id: str, contract_id: str, **changes) -> Contract:
        unknown = set(changes) - _CONTRACT_FIELDS
        if unknown:
            raise ValidationError(f'Unknown contract fields: {", ".join(sorted(unknown))}')

        with self.transaction(league_id):
            contract = self._contract(league_id, contract_id)
            if changes.get('status') == STATUS_ACTIVE and contract.status != STATUS_ACTIVE:
                self._check_no_active_duplicate(contract)
            for name, value in changes.items():
                setattr(contract, name, value)
            contract.updated_at = utc_now_iso()
            self._dirty.add(league_id)
            return copy.deepcopy(contract)

    def update_league_settings(self, league_id: str, **changes) -> League:
        with self.transaction(league_id):
            league = self._league(league_id)
            values = {**dict(league.settings), **changes}
            try:
                league.settings = LeagueSettings.model_validate(values)
            except SchemaError as e:
                raise ValidationError(f'Invalid league settings: {e}') from e
            self._dirty.add(league_id)
            return copy.deepcopy(league)

    def add_dead_money(self, league_id: str, records: Iterable[DeadMoneyRecord]) -> None:
        with self.transaction(league_id):
            self._league(league_id)
            self._dead_money.setdefault(league_id, []).extend(copy.deepcopy(list(records)))
            self._dirty.add(league_id)

    def reset_tag_flags(self, league_id: str) -> int:
        with self.transaction(league_id):
            self._league(league_id)
            now = utc_now_iso()
            reset = 0
            for contract in self._contracts.get(league_id, {}).values():
                if contract.status == STATUS_ACTIVE and contract.has_been_tagged:
                    contract.has_been_tagged = False
                    contract.updated_at = now
                    reset += 1
            self._dirty.add(league_id)
            return reset


class JsonContractRepository(InMemoryContractRepository):
    """Repository backed by one JSON file per league.

    Leagues are loaded on first use from ``<data_dir>/leagues/<id>.json``.
    Every transaction on a league, including the one each single write opens
    for itself, reloads it from disk and holds ``<id>.lock``, so two
    processes never write the same league at once and a write never rests
    on a stale copy. Committing rewrites each changed league file atomically.
    """

    def __init__(self, data_dir: Path | str):
        super().__init__()
        self.data_dir = Path(data_dir)
        self.leagues_dir = self.data_dir / 'leagues'

    def _league_path(self, league_id: str) -> Path:
        return self.leagues_dir / f'{league_id}.json'

    def _lock_path(self, league_id: str) -> Path:
        return self.leagues_dir / f'{league_id}.lock'

    def _load(self, league_id: str) -> None:
        path = self._league_path(league_id)
        if not path.exists():
            raise NotFoundError(f'League not found: {league_id}', code=LEAGUE_NOT_FOUND)
        try:
            data = load_json(path, schema=LeagueFile)
        except (ValueError, OSError) as e:
            raise PersistenceFailure(f'Could not read league {league_id}: {e}') from e

        raw_settings = data.settings.model_dump(exclude={'dead_money_config'})
        settings = LeagueSettings(
            **raw_settings,
            dead_money_config=parse_dead_money_config(data.settings.dead_money_config),
        )
        league = League(
            id=data.id,
            name=data.name,
            settings=settings,
            commissioner=data.commissioner,
            teams=[Team(**t.model_dump()) for t in data.teams],
        )
        self._leagues[league.id] = league
        self._contracts[league.id] = {c.id: Contract(**c.model_dump()) for c in data.contracts}
        self._dead_money[league.id] = [DeadMoneyRecord(**r.model_dump()) for r in data.dead_money]
        logger.debug(f'Loaded league {league_id}: {len(data.contracts)} contracts')

    def _league(self, league_id: str) -> League:
        if league_id not in self._leagues:
            self._load(league_id)
        return super()._league(league_id)

    def _begin(self, league_id: Optional[str]) -> None:
        if league_id is None:
            return
        lock_path = self._lock_path(league_id)
        self.leagues_dir.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError as e:
            raise ConflictError(
                f'League {league_id} is locked by another operation (remove {lock_path} if '
                f'none is running)',
                code=TURNOVER_IN_PROGRESS,
            ) from e
        with os.fdopen(fd, 'w') as f:
            f.write(utc_now_iso())
        try:
            self._load(league_id)
        except BaseException:
            lock_path.unlink(missing_ok=True)
            raise

    def _end(self, league_id: Optional[str]) -> None:
        if league_id is not None:
            self._lock_path(league_id).unlink(missing_ok=True)

    def _commit(self, league_ids: set[str]) -> None:
        for league_id in sorted(league_ids):
            self._write(league_id)

    def _write(self, league_id: str) -> None:
        league = self._leagues[league_id]
        settings = league.settings.model_dump(exclude={'dead_money_config'})
        settings['dead_money_config'] = league.settings.dead_money_config.to_wire()

        payload = LeagueFile(
            id=league.id,
            name=league.name,
            commissioner=league.commissioner,
            settings=settings,
            teams=[dataclasses.asdict(t) for t in league.teams],
            contracts=[
                ContractEntry(**c.to_dict()) for c in self._contracts.get(league_id, {}).values()
            ],
            dead_money=[r.to_dict() for r in self._dead_money.get(league_id, [])],
            updated_at=utc_now_iso(),
        )
        try:
            save_json(self._league_path(league_id), payload)
        except (OSError, TypeError) as e:
            raise PersistenceFailure(f'Could not write league {league_id}: {e}') from e
        logger.info(f'Saved league {league_id}')


def get_repository() -> JsonContractRepository:
    """JSON repository over the configured data directory."""
    return JsonContractRepository(get_data_dir())
