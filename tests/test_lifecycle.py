"""Tests for the address lifecycle (create/read/update/delete)."""

import threading

import pytest

from phpipam_provider.core import AddressLifecycle, SubnetAllocationGuard
from phpipam_provider.exceptions import (
    AddressAlreadyAllocatedError,
    AddressLeakedError,
    AddressNotFoundError,
    AddressStillLiveError,
    AddressSubnetNotFoundError,
    IPAMClientError,
    LifecycleError,
    OverAllocatedError,
    SectionNotFoundError,
    SubnetNotFoundError,
    SubnetSectionNotFoundError,
)
from phpipam_provider.models.enums import LifecycleStep
from phpipam_provider.models.records import APIResponse


# =============================================================================
# Create
# =============================================================================


class TestCreate:
    def test_fresh_hostname(self, fake_client, lifecycle):
        address_id = lifecycle.create("Production", "Web Servers", "web-01")

        address = fake_client.addresses[address_id]
        assert address.hostname == "web-01"
        assert address.subnet_id == "7"
        assert address.ip == "10.0.1.2"
        assert address.description == "phpipam-provider"

    def test_ids_are_fresh(self, lifecycle):
        ids = [
            lifecycle.create("Production", "Web Servers", f"web-{i:02d}")
            for i in range(5)
        ]
        assert len(set(ids)) == 5

    def test_steps_run_in_order(self, fake_client, lifecycle):
        lifecycle.create("Production", "Web Servers", "web-01")
        assert fake_client.calls == [
            "get_sections",
            "get_section_subnets",
            "search_hostname",
            "create_first_free",
            "search_ip",
        ]

    def test_client_tag(self, fake_client):
        lifecycle = AddressLifecycle(fake_client, client_tag="ci")
        address_id = lifecycle.create("Production", "Web Servers", "web-01")
        assert fake_client.addresses[address_id].description == "ci"

    def test_one_existing_refused(self, fake_client, lifecycle):
        fake_client.add_address("7", "10.0.1.50", "web-01")

        with pytest.raises(AddressAlreadyAllocatedError) as exc:
            lifecycle.create("Production", "Web Servers", "web-01")

        assert exc.value.count == 1
        assert "Total Found Addresses: 1" in str(exc.value)
        assert "create_first_free" not in fake_client.calls

    def test_one_existing_force_replace(self, fake_client, lifecycle):
        old = fake_client.add_address("7", "10.0.1.50", "web-01")

        address_id = lifecycle.create(
            "Production", "Databases", "web-01", force_replace=True
        )

        assert address_id != old.id
        assert fake_client.addresses[address_id].subnet_id == "8"

    @pytest.mark.parametrize("force_replace", [False, True])
    def test_several_existing_always_refused(self, fake_client, lifecycle, force_replace):
        fake_client.add_address("7", "10.0.1.50", "web-01")
        fake_client.add_address("8", "10.0.2.50", "web-01")

        with pytest.raises(AddressAlreadyAllocatedError, match="Total Found Addresses: 2"):
            lifecycle.create(
                "Production", "Web Servers", "web-01", force_replace=force_replace
            )

    def test_unknown_section(self, lifecycle):
        with pytest.raises(LifecycleError) as exc:
            lifecycle.create("Staging", "Web Servers", "web-01")

        assert exc.value.step == LifecycleStep.GET_SECTION_ID
        assert isinstance(exc.value.__cause__, SectionNotFoundError)
        assert str(exc.value) == "Error Getting Section ID: Section Not Found"

    def test_unknown_subnet(self, lifecycle):
        with pytest.raises(LifecycleError) as exc:
            lifecycle.create("Lab", "Databases", "web-01")

        assert exc.value.step == LifecycleStep.GET_SUBNET_ID
        assert isinstance(exc.value.__cause__, SubnetNotFoundError)

    def test_section_listing_transport_failure(self, fake_client, lifecycle):
        fake_client.fail["get_sections"] = IPAMClientError("Network error: refused")

        with pytest.raises(LifecycleError, match="Network error: refused") as exc:
            lifecycle.create("Production", "Web Servers", "web-01")
        assert exc.value.step == LifecycleStep.GET_SECTION_ID

    def test_hostname_search_transport_failure(self, fake_client, lifecycle):
        fake_client.fail["search_hostname"] = IPAMClientError("Network error: timeout")

        with pytest.raises(LifecycleError) as exc:
            lifecycle.create("Production", "Web Servers", "web-01")
        assert exc.value.step == LifecycleStep.FIND_EXISTING_ADDRESSES

    def test_subnet_full(self, fake_client, lifecycle):
        fake_client.add_subnet("10", "2", "Tiny", "10.8.0.0/30")
        lifecycle.create("Lab", "Tiny", "a")  # .1 is the gateway, .2 is free

        with pytest.raises(LifecycleError, match="No free addresses found") as exc:
            lifecycle.create("Lab", "Tiny", "b")
        assert exc.value.step == LifecycleStep.ALLOCATE_NEW_ADDRESS

    def test_allocation_transport_failure(self, fake_client, lifecycle):
        fake_client.fail["create_first_free"] = IPAMClientError("HTTP 500: oops")

        with pytest.raises(LifecycleError) as exc:
            lifecycle.create("Production", "Web Servers", "web-01")
        assert exc.value.step == LifecycleStep.ALLOCATE_NEW_ADDRESS

    def test_created_ip_over_allocated(self, fake_client, lifecycle):
        # Someone else already holds the IP the server hands out
        fake_client.add_address("7", "10.0.1.2", "intruder")

        def duplicate_first_free(subnet_id, hostname, description):
            fake_client.add_address(subnet_id, "10.0.1.2", hostname)
            return APIResponse(code=201, success=True, data="10.0.1.2")

        fake_client.create_first_free = duplicate_first_free
        with pytest.raises(LifecycleError) as exc:
            lifecycle.create("Production", "Web Servers", "web-01")

        assert exc.value.step == LifecycleStep.GET_CREATED_ADDRESS_ID
        assert isinstance(exc.value.__cause__, OverAllocatedError)

    def test_guard_held_during_allocation(self, fake_client, lifecycle):
        seen = []
        fake_client.on_allocate = lambda: seen.append(lifecycle.guard.locked)

        lifecycle.create("Production", "Web Servers", "web-01")

        assert seen == [True]
        assert not lifecycle.guard.locked

    def test_guard_released_on_failure(self, lifecycle):
        with pytest.raises(LifecycleError):
            lifecycle.create("Staging", "Web Servers", "web-01")
        assert not lifecycle.guard.locked


class TestConcurrentCreate:
    @pytest.mark.parametrize("guard_factory", [None, SubnetAllocationGuard])
    def test_same_subnet_distinct_ips(self, fake_client, guard_factory):
        lifecycle = AddressLifecycle(
            fake_client, guard=guard_factory() if guard_factory else None
        )
        fake_client.allocation_delay = 0.01
        start = threading.Barrier(8)
        results, errors = {}, []

        def worker(i):
            start.wait()
            try:
                results[i] = lifecycle.create("Production", "Web Servers", f"host-{i}")
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        ips = [fake_client.addresses[a].ip for a in results.values()]
        assert len(set(ips)) == 8

    def test_same_hostname_allocated_once(self, fake_client, lifecycle):
        fake_client.allocation_delay = 0.01
        start = threading.Barrier(4)
        outcomes = []

        def worker():
            start.wait()
            try:
                outcomes.append(lifecycle.create("Production", "Web Servers", "web-01"))
            except AddressAlreadyAllocatedError as e:
                outcomes.append(e)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        created = [o for o in outcomes if isinstance(o, str)]
        assert len(created) == 1
        assert len(fake_client.addresses) == 1

    def test_same_hostname_across_subnets_with_subnet_guard(self, fake_client):
        lifecycle = AddressLifecycle(fake_client, guard=SubnetAllocationGuard())
        fake_client.allocation_delay = 0.05
        start = threading.Barrier(2)
        outcomes = []

        def worker(subnet):
            start.wait()
            try:
                outcomes.append(lifecycle.create("Production", subnet, "web-01"))
            except AddressAlreadyAllocatedError as e:
                outcomes.append(e)

        threads = [
            threading.Thread(target=worker, args=(s,)) for s in ("Web Servers", "Databases")
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len([o for o in outcomes if isinstance(o, str)]) == 1
        assert [a.hostname for a in fake_client.addresses.values()] == ["web-01"]
        assert not lifecycle.guard.locked


# =============================================================================
# Read
# =============================================================================


class TestRead:
    def test_round_trip(self, lifecycle):
        address_id = lifecycle.create("Production", "Databases", "db-01")

        info = lifecycle.read(address_id)

        assert info.hostname == "db-01"
        assert info.section == "Production"
        assert info.subnet == "Databases"
        assert info.ip == "10.0.2.2"
        assert info.gateway == "10.0.2.1"
        assert info.broadcast == "10.0.2.255"
        assert info.bitmask == "24"

    def test_missing_address(self, lifecycle):
        with pytest.raises(AddressNotFoundError):
            lifecycle.read("999")

    def test_missing_subnet(self, fake_client, lifecycle):
        address = fake_client.add_address("77", "10.7.7.7", "orphan")

        with pytest.raises(AddressSubnetNotFoundError, match="Address Subnet Not Found"):
            lifecycle.read(address.id)

    def test_missing_section(self, fake_client, lifecycle):
        fake_client.add_subnet("11", "66", "Detached", "10.6.0.0/24")
        address = fake_client.add_address("11", "10.6.0.9", "orphan")

        with pytest.raises(SubnetSectionNotFoundError, match="Subnet Section Not Found"):
            lifecycle.read(address.id)

    def test_transport_failure(self, fake_client, lifecycle):
        address_id = lifecycle.create("Production", "Web Servers", "web-01")
        fake_client.fail["get_subnet"] = IPAMClientError("Network error: reset")

        with pytest.raises(LifecycleError) as exc:
            lifecycle.read(address_id)
        assert exc.value.step == LifecycleStep.READ_ADDRESS


# =============================================================================
# Update
# =============================================================================


class TestUpdate:
    def test_hostname_only_keeps_id(self, fake_client, lifecycle):
        address_id = lifecycle.create("Production", "Web Servers", "web-01")

        new_id, info = lifecycle.update(address_id, "Production", "Web Servers", "web-99")

        assert new_id == address_id
        assert info.hostname == "web-99"
        assert info.ip == "10.0.1.2"
        assert "update_hostname" in fake_client.calls
        assert "create_first_free" not in fake_client.calls[5:]

    def test_no_change_is_noop(self, fake_client, lifecycle):
        address_id = lifecycle.create("Production", "Web Servers", "web-01")
        fake_client.calls.clear()

        new_id, _ = lifecycle.update(address_id, "Production", "Web Servers", "web-01")

        assert new_id == address_id
        assert "update_hostname" not in fake_client.calls
        assert "delete_address" not in fake_client.calls

    def test_rename_failure(self, fake_client, lifecycle):
        address_id = lifecycle.create("Production", "Web Servers", "web-01")
        fake_client.fail["update_hostname"] = IPAMClientError("HTTP 500: db locked")

        with pytest.raises(LifecycleError) as exc:
            lifecycle.update(address_id, "Production", "Web Servers", "web-02")
        assert exc.value.step == LifecycleStep.UPDATE_ADDRESS

    def test_subnet_change_reallocates(self, fake_client, lifecycle):
        old_id = lifecycle.create("Production", "Web Servers", "web-01")

        new_id, info = lifecycle.update(old_id, "Production", "Databases", "web-01")

        assert new_id != old_id
        assert info.subnet == "Databases"
        assert info.hostname == "web-01"
        with pytest.raises(AddressNotFoundError):
            lifecycle.read(old_id)

    def test_section_change_reallocates(self, lifecycle):
        old_id = lifecycle.create("Production", "Web Servers", "web-01")

        new_id, info = lifecycle.update(old_id, "Lab", "Web Servers", "web-01")

        assert new_id != old_id
        assert info.section == "Lab"
        assert info.ip == "10.9.0.2"

    def test_reallocation_skips_liveness(self, fake_client, lifecycle):
        old_id = lifecycle.create("Production", "Web Servers", "web-01")
        fake_client.live.add(old_id)
        fake_client.calls.clear()

        lifecycle.update(old_id, "Production", "Databases", "web-01")

        assert "ping_address" not in fake_client.calls
        assert old_id not in fake_client.addresses

    def test_reallocation_leak(self, fake_client, lifecycle):
        old_id = lifecycle.create("Production", "Web Servers", "web-01")
        fake_client.fail["delete_address"] = IPAMClientError("Network error: reset")

        with pytest.raises(AddressLeakedError, match="manual cleanup required") as exc:
            lifecycle.update(old_id, "Production", "Databases", "web-01")

        assert exc.value.old_address_id == old_id
        assert exc.value.new_address_id in fake_client.addresses
        assert old_id in fake_client.addresses

    def test_reads_current_when_not_given(self, fake_client, lifecycle):
        address_id = lifecycle.create("Production", "Web Servers", "web-01")
        fake_client.calls.clear()

        lifecycle.update(address_id, "Production", "Web Servers", "web-02")

        assert fake_client.calls[0] == "get_address"


# =============================================================================
# Delete
# =============================================================================


class TestDelete:
    def test_offline_address_released(self, fake_client, lifecycle):
        address_id = lifecycle.create("Production", "Web Servers", "web-01")

        lifecycle.delete(address_id)

        assert address_id not in fake_client.addresses
        assert fake_client.calls[-2:] == ["ping_address", "delete_address"]

    def test_live_address_refused(self, fake_client, lifecycle):
        address_id = lifecycle.create("Production", "Web Servers", "web-01")
        fake_client.live.add(address_id)

        with pytest.raises(AddressStillLiveError, match="Still Live"):
            lifecycle.delete(address_id)

        assert "delete_address" not in fake_client.calls
        assert lifecycle.read(address_id).hostname == "web-01"

    def test_force_release_ignores_liveness(self, fake_client, lifecycle):
        address_id = lifecycle.create("Production", "Web Servers", "web-01")
        fake_client.live.add(address_id)

        lifecycle.delete(address_id, force_release=True)

        assert "ping_address" not in fake_client.calls
        with pytest.raises(AddressNotFoundError):
            lifecycle.read(address_id)

    def test_liveness_transport_failure(self, fake_client, lifecycle):
        address_id = lifecycle.create("Production", "Web Servers", "web-01")
        fake_client.fail["ping_address"] = IPAMClientError("Network error: reset")

        with pytest.raises(LifecycleError) as exc:
            lifecycle.delete(address_id)
        assert exc.value.step == LifecycleStep.LIVENESS_CHECK
        assert address_id in fake_client.addresses

    def test_delete_failure(self, fake_client, lifecycle):
        address_id = lifecycle.create("Production", "Web Servers", "web-01")
        fake_client.fail["delete_address"] = IPAMClientError("HTTP 500: oops")

        with pytest.raises(LifecycleError) as exc:
            lifecycle.delete(address_id)
        assert exc.value.step == LifecycleStep.DELETE_ADDRESS

    def test_delete_unknown_id(self, lifecycle):
        with pytest.raises(LifecycleError, match="Address not found") as exc:
            lifecycle.delete("999")
        assert exc.value.step == LifecycleStep.DELETE_ADDRESS

    def test_check_live(self, fake_client, lifecycle):
        address_id = lifecycle.create("Production", "Web Servers", "web-01")
        assert lifecycle.check_live(address_id) is False
        fake_client.live.add(address_id)
        assert lifecycle.check_live(address_id) is True
