"""
Stage builders — the exact invocations each compile stage performs.

Each builder turns (plan, workspace) into an ordered list of Actions.
Nothing runs here; the executor dispatches the actions in order and
stops at the first failure.
"""

from __future__ import annotations

from gccforge.core.data.constants import (
    CONFIGURE_BASELINE,
    GLIBC_STUBS_HEADER,
    STATX_DELETE_LINES,
    STATX_HEADER,
)
from gccforge.core.models.action import Action
from gccforge.core.models.plan import BuildPlan
from gccforge.core.models.stage import Stage
from gccforge.core.models.workspace import Workspace


def _shell(stage: Stage, step: str, argv: list[str], cwd: str, **extra) -> Action:
    return Action(
        id=f"{stage.value}:{step}",
        name=" ".join(argv),
        adapter="shell",
        stage=stage.value,
        params={"argv": argv, "cwd": cwd, **extra},
    )


def _make(plan: BuildPlan, *targets: str) -> list[str]:
    return ["make", *targets, f"-j{plan.jobs}"]


def _build_flags(plan: BuildPlan, *flags: str) -> list[str]:
    """``--build=`` style flags, omitted when the build triple is unknown."""
    if not plan.build_triple:
        return []
    return [f"{flag}={plan.build_triple}" for flag in flags]


# ── BINUTILS ────────────────────────────────────────────────────


def binutils_actions(plan: BuildPlan, ws: Workspace) -> list[Action]:
    cwd = str(ws.build_dir("binutils"))
    configure = [
        "../binutils/configure",
        f"--target={plan.target}",
        f"--prefix={ws.install_dir}",
        "--disable-gdb",
        "--disable-nls",
        "--enable-gold",
        "--enable-lto",
        "--enable-plugins",
        "--enable-relro",
        "--with-sysroot",
        *CONFIGURE_BASELINE,
    ]
    return [
        _shell(Stage.BINUTILS, "configure", configure, cwd),
        _shell(Stage.BINUTILS, "make", _make(plan), cwd),
        _shell(Stage.BINUTILS, "install", _make(plan, "install"), cwd),
    ]


# ── HEADERS ─────────────────────────────────────────────────────


def headers_actions(plan: BuildPlan, ws: Workspace) -> list[Action]:
    argv = [
        "make",
        f"ARCH={plan.kernel_arch}",
        f"INSTALL_HDR_PATH={ws.install_dir / plan.target}",
        "headers_install",
        f"-j{plan.jobs}",
    ]
    return [_shell(Stage.HEADERS, "headers_install", argv, str(ws.root / "linux"))]


# ── GCC_FRONTEND ────────────────────────────────────────────────


def _libgcc_actions(plan: BuildPlan, ws: Workspace, stage: Stage) -> list[Action]:
    cwd = str(ws.build_dir("gcc"))
    return [
        _shell(stage, "all-target-libgcc", _make(plan, "all-target-libgcc"), cwd),
        _shell(stage, "install-target-libgcc", _make(plan, "install-target-libgcc"), cwd),
    ]


def gcc_frontend_actions(plan: BuildPlan, ws: Workspace) -> list[Action]:
    cwd = str(ws.build_dir("gcc"))
    configure = [
        "../gcc/configure",
        "--enable-languages=c,c++",
        f"--target={plan.target}",
        f"--prefix={ws.install_dir}",
        "--disable-nls",
    ]
    if plan.use_newlib:
        configure += ["--disable-shared", "--with-newlib"]
    configure += list(CONFIGURE_BASELINE)

    actions = [
        _shell(Stage.GCC_FRONTEND, "configure", configure, cwd),
        _shell(Stage.GCC_FRONTEND, "all-gcc", _make(plan, "all-gcc"), cwd),
        _shell(Stage.GCC_FRONTEND, "install-gcc", _make(plan, "install-gcc"), cwd),
    ]
    if plan.libgcc_early:
        actions += _libgcc_actions(plan, ws, Stage.GCC_FRONTEND)
    return actions


# ── RUNTIME_LIBRARY ─────────────────────────────────────────────


def glibc_actions(plan: BuildPlan, ws: Workspace) -> list[Action]:
    stage = Stage.RUNTIME_LIBRARY
    cwd = str(ws.build_dir("glibc"))
    sysroot = ws.install_dir / plan.target
    configure = [
        f"../{plan.libc_source_dir}/configure",
        f"--prefix={sysroot}",
        *_build_flags(plan, "--build"),
        f"--host={plan.target}",
        f"--target={plan.target}",
        f"--with-headers={sysroot / 'include'}",
        *CONFIGURE_BASELINE,
        "libc_cv_forced_unwind=yes",
        "with_selinux=no",
    ]
    actions = [
        _shell(stage, "configure", configure, cwd),
        _shell(stage, "install-headers",
               _make(plan, "install-bootstrap-headers=yes", "install-headers"), cwd),
        _shell(stage, "csu-subdir-lib", _make(plan, "csu/subdir_lib"), cwd),
        _shell(stage, "install-crt",
               ["install", "csu/crt1.o", "csu/crti.o", "csu/crtn.o", str(sysroot / "lib")], cwd),
        _shell(stage, "libc-stub", [
            f"{plan.target}-gcc", "-nostdlib", "-nostartfiles", "-shared",
            "-x", "c", "/dev/null", "-o", str(sysroot / "lib" / "libc.so"),
        ], cwd),
        Action(
            id=f"{stage.value}:stubs-header",
            adapter="filesystem",
            stage=stage.value,
            params={"operation": "touch", "path": str(sysroot / GLIBC_STUBS_HEADER)},
        ),
    ]
    if not plan.libgcc_early:
        actions += _libgcc_actions(plan, ws, stage)
    actions += [
        _shell(stage, "make", _make(plan), cwd),
        _shell(stage, "install", _make(plan, "install"), cwd),
    ]
    return actions


def newlib_actions(plan: BuildPlan, ws: Workspace) -> list[Action]:
    stage = Stage.RUNTIME_LIBRARY
    cwd = str(ws.build_dir("newlib"))
    configure = [
        f"../{plan.libc_source_dir}/configure",
        f"--prefix={ws.install_dir}",
        *_build_flags(plan, "--build", "--host"),
        f"--target={plan.target}",
    ]
    return [
        _shell(stage, "configure", configure, cwd),
        _shell(stage, "make", _make(plan), cwd),
        _shell(stage, "install", _make(plan, "install"), cwd),
    ]


def runtime_library_actions(plan: BuildPlan, ws: Workspace) -> list[Action]:
    if plan.use_newlib:
        return newlib_actions(plan, ws)
    return glibc_actions(plan, ws)


# ── GCC_FINALIZE ────────────────────────────────────────────────


def gcc_finalize_actions(plan: BuildPlan, ws: Workspace) -> list[Action]:
    stage = Stage.GCC_FINALIZE
    build_gcc = ws.build_dir("gcc")
    cwd = str(build_gcc)
    # Each deletion sees the file as left by the previous one.
    edits = [
        Action(
            id=f"{stage.value}:statx-line-{line}",
            adapter="filesystem",
            stage=stage.value,
            params={
                "operation": "delete_line",
                "path": str(build_gcc / STATX_HEADER),
                "line": line,
                "_optional": True,
            },
        )
        for line in STATX_DELETE_LINES
    ]
    return [
        *edits,
        _shell(stage, "all", _make(plan, "all"), cwd),
        _shell(stage, "install", _make(plan, "install"), cwd),
    ]


STAGE_BUILDERS = {
    Stage.BINUTILS: binutils_actions,
    Stage.HEADERS: headers_actions,
    Stage.GCC_FRONTEND: gcc_frontend_actions,
    Stage.RUNTIME_LIBRARY: runtime_library_actions,
    Stage.GCC_FINALIZE: gcc_finalize_actions,
}
