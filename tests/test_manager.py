import json
from pathlib import Path

from expression import Result
import pytest

from jsonmanager.customtypes import Error
from jsonmanager.manager import SerializerManager, SerializerNotReadyException
from jsonmanager.serialization.config import SerializerConfig
from jsonmanager.serialization.engine import SerializationException
from jsonmanager.storage.file import FileSetupException
from tests.samples import EqualityMoneyAdapter, Money, MoneyAdapter, Person, Wallet, sample_person

@pytest.fixture
def manager():
    return SerializerManager()

@pytest.fixture
def money_adapter():
    return MoneyAdapter()



def test_serializer_is_built_on_construction_by_default(manager: SerializerManager):
    assert manager.get_serializer() is not None
    assert manager.list_adapters() == []



def test_serializer_is_not_built_when_caching_is_deferred():
    manager = SerializerManager(cache_immediately=False)

    assert manager.get_serializer() is None



def test_rebuild_makes_deferred_manager_ready():
    manager = SerializerManager(cache_immediately=False)

    manager.rebuild_serializer()

    assert manager.get_serializer() is not None



async def test_io_before_rebuild_raises(tmp_path: Path):
    manager = SerializerManager(cache_immediately=False)

    with pytest.raises(SerializerNotReadyException):
        await manager.load_from_file(Person, tmp_path / "person.json")



def test_config_factory_is_used_on_every_rebuild():
    calls = []
    def config_factory():
        calls.append(1)
        return SerializerConfig(pretty_print=False)
    manager = SerializerManager(config_factory=config_factory)

    manager.rebuild_serializer()

    assert len(calls) == 2
    assert manager.get_serializer().config.pretty_print is False



def test_registered_adapter_is_not_used_until_rebuild(manager: SerializerManager, money_adapter: MoneyAdapter):
    stale_serializer = manager.get_serializer()

    manager.register_adapter(Money, money_adapter)

    assert manager.get_serializer() is stale_serializer
    with pytest.raises(SerializationException):
        stale_serializer.to_json(Money(1, "EUR"), Money)



def test_adapter_override_after_rebuild(manager: SerializerManager, money_adapter: MoneyAdapter):
    manager.register_adapter(Money, money_adapter)
    manager.rebuild_serializer()
    serializer = manager.get_serializer()

    text = serializer.to_json(Money(7, "CHF"), Money)
    restored = serializer.from_json(text, Money)

    assert json.loads(text)["adapted"] is True
    assert restored.via_adapter is True
    assert restored == Money(7, "CHF")



def test_list_adapters_returns_snapshot(manager: SerializerManager, money_adapter: MoneyAdapter):
    manager.register_adapter(Money, money_adapter)
    snapshot = manager.list_adapters()

    manager.unregister_adapter(money_adapter)
    manager.register_adapter(Person, MoneyAdapter())

    assert snapshot == [money_adapter]



def test_mutating_list_adapters_result_does_not_change_registry(manager: SerializerManager, money_adapter: MoneyAdapter):
    manager.register_adapter(Money, money_adapter)

    manager.list_adapters().clear()

    assert manager.list_adapters() == [money_adapter]



def test_last_registration_for_type_wins(manager: SerializerManager):
    first = MoneyAdapter()
    second = MoneyAdapter()

    manager.register_adapter(Money, first)
    manager.register_adapter(Money, second)

    assert manager.list_adapters() == [second]



def test_adapter_is_registered_for_one_type_at_a_time(manager: SerializerManager, money_adapter: MoneyAdapter):
    manager.register_adapter(Person, money_adapter)
    manager.register_adapter(Money, money_adapter)
    manager.rebuild_serializer()

    assert manager.list_adapters() == [money_adapter]
    assert manager.get_serializer().adapters == {Money: money_adapter}



def test_unregister_removes_adapter(manager: SerializerManager, money_adapter: MoneyAdapter):
    manager.register_adapter(Money, money_adapter)

    manager.unregister_adapter(money_adapter)

    assert manager.list_adapters() == []



def test_unregister_unknown_adapter_is_noop(manager: SerializerManager, money_adapter: MoneyAdapter):
    manager.register_adapter(Money, money_adapter)

    manager.unregister_adapter(MoneyAdapter())

    assert manager.list_adapters() == [money_adapter]



def test_list_adapters_accepts_unhashable_adapters(manager: SerializerManager):
    adapter = EqualityMoneyAdapter(currency="EUR")
    manager.register_adapter(Money, adapter)

    adapters = manager.list_adapters()
    manager.unregister_adapter(adapter)

    assert len(adapters) == 1
    assert adapters[0] is adapter
    assert manager.list_adapters() == []



async def test_save_and_load_dataclass_with_adapted_field(manager: SerializerManager, money_adapter: MoneyAdapter, tmp_path: Path):
    target = tmp_path / "wallet.json"
    wallet = Wallet(owner="Alice", cash=Money(9, "EUR"))
    manager.register_adapter(Money, money_adapter)
    manager.rebuild_serializer()

    await manager.save_to_file(wallet, Wallet, target)
    restored = await manager.load_from_file(Wallet, target)

    assert json.loads(target.read_text(encoding="utf-8"))["cash"]["adapted"] is True
    assert restored == wallet
    assert restored.cash.via_adapter is True



def test_register_does_not_validate_adapter(manager: SerializerManager):
    manager.register_adapter(Money, object())

    with pytest.raises(TypeError):
        manager.rebuild_serializer()



async def test_save_to_file_creates_missing_directories(manager: SerializerManager, tmp_path: Path):
    target = tmp_path / "nested" / "deeper" / "person.json"

    await manager.save_to_file(sample_person(), Person, target)

    assert target.is_file()
    assert json.loads(target.read_text(encoding="utf-8"))["name"] == "Alice"



async def test_save_then_load_round_trip(manager: SerializerManager, tmp_path: Path):
    target = str(tmp_path / "person.json")
    person = sample_person()

    await manager.save_to_file(person, Person, target)
    restored = await manager.load_from_file(Person, target)

    assert restored == person



async def test_save_uses_runtime_type_when_type_is_none(manager: SerializerManager, tmp_path: Path):
    target = tmp_path / "person.json"

    await manager.save_to_file(Person(name="Bob", age=40), None, target)

    assert json.loads(target.read_text(encoding="utf-8"))["age"] == 40



async def test_save_replaces_previous_content(manager: SerializerManager, tmp_path: Path):
    target = tmp_path / "person.json"
    await manager.save_to_file(sample_person(), Person, target)

    await manager.save_to_file([1], list[int], target)

    assert json.loads(target.read_text(encoding="utf-8")) == [1]



async def test_save_and_load_through_adapter(manager: SerializerManager, money_adapter: MoneyAdapter, tmp_path: Path):
    target = tmp_path / "wallet.json"
    manager.register_adapter(Money, money_adapter)
    manager.rebuild_serializer()

    await manager.save_to_file([Money(3, "SEK")], list[Money], target)
    restored = await manager.load_from_file(list[Money], target)

    assert restored == [Money(3, "SEK")]
    assert restored[0].via_adapter is True



async def test_load_from_missing_file_creates_it_and_returns_none(manager: SerializerManager, tmp_path: Path):
    target = tmp_path / "missing" / "person.json"

    res = await manager.load_from_file(Person, target)

    assert res is None
    assert target.is_file()



async def test_load_from_malformed_file_raises(manager: SerializerManager, tmp_path: Path):
    target = tmp_path / "person.json"
    target.write_text("{broken", encoding="utf-8")

    with pytest.raises(SerializationException):
        await manager.load_from_file(Person, target)



async def test_load_from_directory_raises_os_error(manager: SerializerManager, tmp_path: Path):
    with pytest.raises(OSError):
        await manager.load_from_file(Person, tmp_path)



async def test_save_raises_when_file_cannot_be_created(manager: SerializerManager, tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(FileSetupException):
        await manager.save_to_file(sample_person(), Person, blocker / "person.json")



async def test_try_load_from_file_returns_ok(manager: SerializerManager, tmp_path: Path):
    target = tmp_path / "person.json"
    await manager.save_to_file(sample_person(), Person, target)

    res = await manager.try_load_from_file(Person, target)

    assert type(res) is Result
    assert res.is_ok()
    assert res.ok == sample_person()



async def test_try_save_to_file_returns_error_instead_of_raising(manager: SerializerManager, tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")

    res = await manager.try_save_to_file(sample_person(), Person, blocker / "person.json")

    assert type(res) is Result
    assert res.is_error()
    assert isinstance(res.error, Error)
    assert "Failed to create" in res.error.message
