"""
Tests for source acquisition — fetch, tools, extract, update, link.
"""

from pathlib import Path

import pytest

from gccforge.core.errors import AcquisitionError
from gccforge.core.models.action import Receipt
from gccforge.core.models.plan import Dependency
from gccforge.core.services.acquisition import SourceAcquirer
from gccforge.core.services.resolver import resolve


class TestFetch:
    def test_clone_mode_fetches_everything(self, ctx, settings, tools):
        plan = resolve("arm64", "gnu", 11)
        receipts = SourceAcquirer(ctx, settings).fetch_all(plan)

        assert all(r.ok for r in receipts)
        assert sorted(tools.git.action_ids) == sorted(
            f"fetch:{d}" for d in ("binutils", "mpc", "isl", "glibc", "gcc")
        )
        assert tools.svn.action_ids == ["fetch:mpfr"]
        assert sorted(tools.download.action_ids) == ["fetch:gmp", "fetch:linux"]

    def test_clone_params(self, ctx, settings, tools):
        plan = resolve("arm64", "gnu", 10)
        SourceAcquirer(ctx, settings).fetch_all(plan)
        gcc = tools.git.calls_matching("fetch:gcc")[0].action.params
        assert gcc["branch"] == "gcc-10-branch"
        assert gcc["shallow"] is True
        assert gcc["cwd"] == str(settings.sources_path)

    def test_full_history_disables_shallow(self, ctx, settings, tools):
        plan = resolve("arm64", "gnu", 10, full_history=True)
        SourceAcquirer(ctx, settings).fetch_all(plan)
        assert all(c.action.params["shallow"] is False for c in tools.git.call_log)

    def test_second_fetch_is_a_no_op(self, ctx, settings, tools):
        plan = resolve("arm", "gnu", 9)
        acquirer = SourceAcquirer(ctx, settings)
        acquirer.prepare_sources_dir()
        acquirer.fetch_all(plan)
        calls = (tools.git.call_count, tools.svn.call_count, tools.download.call_count)

        receipts = acquirer.fetch_all(plan)

        assert (tools.git.call_count, tools.svn.call_count, tools.download.call_count) == calls
        assert all(r.status == "skipped" for r in receipts)
        assert all(r.adapter == "acquisition" for r in receipts)

    def test_fetch_failure_raises(self, ctx, settings, tools):
        tools.git.set_failure("fetch:gcc", "fatal: unable to access")
        with pytest.raises(AcquisitionError, match="Failed to fetch gcc"):
            SourceAcquirer(ctx, settings).fetch_all(resolve("arm64", "gnu", 10))

    def test_missing_downloader_hint(self, ctx, settings, tools):
        tools.download.set_response("fetch:gmp", Receipt.failure(
            adapter="download", action_id="fetch:gmp",
            error="Neither aria2c, wget nor curl could be found on your system!",
            metadata={"no_downloader": True},
        ))
        with pytest.raises(AcquisitionError) as exc:
            SourceAcquirer(ctx, settings).fetch_all(resolve("arm", "gnu", 10))
        assert "curl" in exc.value.hint

    def test_status(self, ctx, settings):
        plan = resolve("arm", "gnu", 10)
        (settings.sources_path / "gcc").mkdir(parents=True)
        statuses = {s.source.dependency.value: s for s in SourceAcquirer(ctx, settings).status(plan)}
        assert statuses["gcc"].present
        assert not statuses["binutils"].present
        assert statuses["gcc"].to_dict()["revision"] == "git:gcc-10-branch"


class TestTools:
    def test_prebuilt_tools_are_reused(self, ctx, settings, tools):
        acquirer = SourceAcquirer(ctx, settings)
        acquirer.provision_tools(4)
        assert tools.git.calls_matching("tools:*") == []
        assert tools.shell.calls_matching("tools:*") == []
        assert ctx.search_path[0] == str(settings.prebuilts_path / "bin")

    def test_builds_missing_pigz(self, ctx, settings, tools):
        (settings.prebuilts_path / "bin" / "pigz").unlink()

        def produce_pigz(exec_ctx):
            checkout = settings.tool_cache_dir / "pigz"
            checkout.mkdir(parents=True, exist_ok=True)
            (checkout / "pigz").write_text("binary")

        tools.shell.set_side_effect("tools:pigz:build", produce_pigz)
        SourceAcquirer(ctx, settings).provision_tools(4)

        assert tools.git.action_ids == ["tools:pigz:clone", "tools:pigz:clean", "tools:pigz:pull"]
        build = tools.shell.calls_matching("tools:pigz:build")[0].action.params
        assert build["argv"][-2:] == ["-j4", "pigz"]
        assert (settings.prebuilts_path / "bin" / "pigz").read_text() == "binary"

    def test_provisioned_once_per_run(self, ctx, settings, tools):
        acquirer = SourceAcquirer(ctx, settings)
        acquirer.provision_tools(2)
        ran = len(ctx.receipts)
        acquirer.provision_tools(2)
        assert len(ctx.receipts) == ran

    def test_tool_failure_raises(self, ctx, settings, tools):
        (settings.prebuilts_path / "bin" / "pigz").unlink()
        tools.shell.set_failure("tools:pigz:build")
        with pytest.raises(AcquisitionError, match="Error building pigz"):
            SourceAcquirer(ctx, settings).provision_tools(2)


class TestExtract:
    def test_strip_components(self, ctx, settings, tools):
        plan = resolve("arm", "gnu", 10, tarball_mode=True)
        SourceAcquirer(ctx, settings).extract(plan)

        linux = tools.shell.calls_matching("extract:linux")[0].action.params["argv"]
        assert linux[:2] == ["tar", "xf"]
        assert linux[-1] == "--strip-components=1"
        assert (ctx.root / "linux").is_dir()
        assert (ctx.root / "gcc").is_dir()
        assert (ctx.root / "gmp-6.2.1").is_dir()

    def test_member_extraction(self, ctx, settings, tools):
        plan = resolve("arm64", "linaro", 8, tarball_mode=True)

        def unpack_member(exec_ctx):
            (ctx.root / "gcc-arm-src-snapshot-8.3-2019.03" / "gcc").mkdir(parents=True)

        tools.shell.set_side_effect("extract:gcc", unpack_member)
        SourceAcquirer(ctx, settings).extract(plan)

        argv = tools.shell.calls_matching("extract:gcc")[0].action.params["argv"]
        assert "--use-compress-program=pxz" in argv
        assert argv[-1] == "gcc-arm-src-snapshot-8.3-2019.03"
        assert (ctx.root / "gcc" / "gcc").is_dir()
        assert not (ctx.root / "gcc-arm-src-snapshot-8.3-2019.03").exists()

    def test_extract_failure(self, ctx, settings, tools):
        tools.shell.set_failure("extract:gmp")
        with pytest.raises(AcquisitionError, match="gmp-6.2.1.tar.lz"):
            SourceAcquirer(ctx, settings).extract(resolve("arm", "gnu", 10))

    def test_archive_without_destination(self, ctx, settings, tools):
        plan = resolve("arm", "gnu", 10)
        gmp = plan.source(Dependency.GMP).model_copy(update={"extract_to": None})
        with pytest.raises(AcquisitionError, match="No extraction directory for gmp-6.2.1.tar.lz"):
            SourceAcquirer(ctx, settings).extract(plan.model_copy(update={"sources": (gmp,)}))
        assert tools.shell.call_count == 0


class TestUpdate:
    def test_sync_and_bootstrap(self, ctx, settings, tools):
        plan = resolve("arm64", "gnu", 11)
        SourceAcquirer(ctx, settings).update(plan)

        assert sorted(tools.git.action_ids) == sorted(
            f"update:{d}" for d in ("binutils", "mpc", "isl", "glibc", "gcc")
        )
        assert tools.svn.action_ids == ["update:mpfr"]
        assert tools.shell.action_ids == [
            "bootstrap:mpfr:0",
            "bootstrap:mpfr:1",
            "bootstrap:mpc:0",
            "bootstrap:isl:0",
        ]
        sync = tools.git.calls_matching("update:gcc")[0].action.params
        assert sync["operation"] == "sync"
        assert sync["branch"] == "master"

    def test_no_update_only_bootstraps_existing(self, ctx, settings, tools):
        (settings.sources_path / "mpc").mkdir(parents=True)
        plan = resolve("arm64", "gnu", 11, no_update=True)
        SourceAcquirer(ctx, settings).update(plan)
        assert tools.git.call_count == 0
        assert tools.shell.action_ids == ["bootstrap:mpc:0"]

    def test_update_failure(self, ctx, settings, tools):
        tools.svn.set_failure("update:mpfr")
        with pytest.raises(AcquisitionError, match="mpfr did not get fetched properly"):
            SourceAcquirer(ctx, settings).update(resolve("arm", "gnu", 10))


class TestLink:
    def test_links_into_root(self, ctx, settings):
        for name in ("binutils", "gcc", "glibc"):
            (settings.sources_path / name).mkdir(parents=True)
        SourceAcquirer(ctx, settings).link(resolve("arm", "gnu", 10))
        for name in ("binutils", "gcc", "glibc"):
            link = ctx.root / name
            assert link.is_symlink()
            assert link.resolve() == (settings.sources_path / name).resolve()

    def test_newlib_linked_instead_of_glibc(self, ctx, settings):
        SourceAcquirer(ctx, settings).link(resolve("arm", "gnu", 10, bare_metal=True))
        assert (ctx.root / "newlib").is_symlink()
        assert not (ctx.root / "glibc").exists()

    def test_tarballs_not_linked(self, ctx, settings):
        SourceAcquirer(ctx, settings).link(resolve("arm", "gnu", 10, tarball_mode=True))
        assert not (ctx.root / "gcc").exists()


class TestAcquire:
    def test_full_sequence(self, ctx, settings, tools):
        plan = resolve("arm64", "gnu", 11)
        SourceAcquirer(ctx, settings).acquire(plan)
        assert (ctx.root / "gcc").is_dir()
        assert (settings.sources_path / "gmp-6.2.1.tar.lz").is_file()
        assert (ctx.root / "gmp-6.2.1").is_dir()
        ids = [r.action_id for r in ctx.receipts]
        assert ids.index("fetch:gcc") < ids.index("extract:gmp") < ids.index("update:gcc") < ids.index("link:gcc")

    def test_rerun_fetches_nothing(self, ctx, settings, tools):
        plan = resolve("arm64", "gnu", 11)
        acquirer = SourceAcquirer(ctx, settings)
        acquirer.acquire(plan)
        fetched = len(tools.git.calls_matching("fetch:*")) + tools.download.call_count

        SourceAcquirer(ctx, settings).acquire(plan)
        assert len(tools.git.calls_matching("fetch:*")) + tools.download.call_count == fetched


def test_sources_dir_failure(ctx, settings, tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("file in the way")
    settings = settings.model_copy(update={"sources_dir": blocker / "sources"})
    with pytest.raises(AcquisitionError, match="sources directory"):
        SourceAcquirer(ctx, settings).prepare_sources_dir()
