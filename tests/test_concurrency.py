"""Tests for concurrent access to the store."""

import threading

from common.exceptions import LastAdminViolationError, UnauthorizedError
from common.types import Role
from conftest import ADMIN, PUBLISHER
from controller.services.access_service import AccessService


def run_threads(target, count):
    errors = []
    results = []
    lock = threading.Lock()

    def worker(i):
        try:
            result = target(i)
            with lock:
                results.append(result)
        except Exception as e:
            with lock:
                errors.append(e)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return results, errors


class TestConcurrentUploads:
    """Test uploads racing on the same content."""

    def test_identical_uploads_share_one_record(self, file_service, store):
        results, errors = run_threads(
            lambda i: file_service.upload_file(PUBLISHER, f"copy{i}.txt", b"shared payload"),
            20
        )
        assert errors == []
        assert len({m.file_id for m in results}) == 20
        assert store.contents.count() == 1
        assert store.contents.ref_count(results[0].content_hash) == 20
        store.check_consistency()

    def test_concurrent_upload_and_delete(self, file_service, store):
        existing = [
            file_service.upload_file(PUBLISHER, f"f{i}.txt", b"payload")
            for i in range(10)
        ]

        def work(i):
            if i % 2:
                return file_service.upload_file(PUBLISHER, f"n{i}.txt", b"payload")
            return file_service.delete_file(ADMIN, existing[i].file_id)

        _, errors = run_threads(work, 10)
        assert errors == []
        assert store.files.count() == 10
        store.check_consistency()


class TestConcurrentRevokes:
    """Test that racing revokes never remove every Admin."""

    def test_two_admins_revoking_each_other(self, store):
        store.roles.grant("second", Role.ADMIN)
        service = AccessService(store)
        pairs = [(ADMIN, "second"), ("second", ADMIN)]

        results, errors = run_threads(
            lambda i: service.revoke_role(pairs[i][0], pairs[i][1], Role.ADMIN),
            2
        )

        assert len(store.roles.admins()) == 1
        assert len(results) == 1
        assert len(errors) == 1
        assert isinstance(errors[0], (LastAdminViolationError, UnauthorizedError))

    def test_every_admin_revoking_itself(self, store):
        identities = [ADMIN] + [f"admin{i}" for i in range(10)]
        for identity in identities[1:]:
            store.roles.grant(identity, Role.ADMIN)

        service = AccessService(store)
        results, errors = run_threads(
            lambda i: service.revoke_role(identities[i], identities[i], Role.ADMIN),
            len(identities)
        )

        assert len(store.roles.admins()) == 1
        assert len(results) == len(identities) - 1
        assert len(errors) == 1
        assert isinstance(errors[0], LastAdminViolationError)
