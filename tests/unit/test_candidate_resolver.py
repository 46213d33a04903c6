"""Unit tests for candidate resolution."""

import pytest

from binclean.core.aggregator import BuildUnitAggregator
from binclean.core.candidate_resolver import CandidateResolver
from binclean.core.tfm import TfmCatalog
from binclean.entities import CleanOptions, Observation, OutputKind
from binclean.utils.exceptions import PolicyNotImplementedError


@pytest.fixture
def project_dir(tmp_path):
    """App project with bin/Debug/net6.0 and bin/Debug/net8.0 outputs."""
    app = tmp_path / "App"
    for tfm in ("net6.0", "net8.0"):
        (app / "bin" / "Debug" / tfm).mkdir(parents=True)
        (app / "bin" / "Debug" / tfm / "App.dll").write_bytes(b"x")
    (app / "App.csproj").write_text("<Project />")
    return app


def resolve(project, output, options=None, kind=OutputKind.OUT, configuration="Debug", tfms="net8.0"):
    aggregator = BuildUnitAggregator()
    aggregator.record(
        Observation(
            build_unit_path=str(project),
            output_path=str(output),
            output_kind=kind,
            configuration_name=configuration,
            target_framework_ids=tfms,
        )
    )
    resolver = CandidateResolver(aggregator, options or CleanOptions())
    return resolver, aggregator, resolver.resolve(aggregator.get(str(project)))


class TestPrimaryOutput:
    """Test managed OutDir resolution."""

    def test_clean_configuration_directory(self, project_dir):
        """Every framework folder next to the current one is a candidate."""
        _, _, candidates = resolve(project_dir / "App.csproj", project_dir / "bin" / "Debug" / "net8.0")

        assert candidates == [
            (str(project_dir / "bin" / "Debug" / "net6.0"), OutputKind.OUT),
            (str(project_dir / "bin" / "Debug" / "net8.0"), OutputKind.OUT),
        ]

    def test_only_noncurrent(self, project_dir):
        """Only frameworks the project no longer targets are candidates."""
        _, _, candidates = resolve(
            project_dir / "App.csproj",
            project_dir / "bin" / "Debug" / "net8.0",
            options=CleanOptions(only_noncurrent=True),
        )

        assert candidates == [(str(project_dir / "bin" / "Debug" / "net6.0"), OutputKind.OUT)]

    def test_polluted_configuration_directory(self, project_dir):
        """Stray files and non-framework folders are left alone."""
        (project_dir / "bin" / "Debug" / "notes.txt").write_text("keep me")
        (project_dir / "bin" / "Debug" / "publish").mkdir()

        _, _, candidates = resolve(project_dir / "App.csproj", project_dir / "bin" / "Debug" / "net8.0")

        paths = [path for path, _ in candidates]
        assert paths == [
            str(project_dir / "bin" / "Debug" / "net6.0"),
            str(project_dir / "bin" / "Debug" / "net8.0"),
        ]

    def test_polluted_and_only_noncurrent(self, project_dir):
        (project_dir / "bin" / "Debug" / "notes.txt").write_text("keep me")

        _, _, candidates = resolve(
            project_dir / "App.csproj",
            project_dir / "bin" / "Debug" / "net8.0",
            options=CleanOptions(only_noncurrent=True),
        )

        assert candidates == [(str(project_dir / "bin" / "Debug" / "net6.0"), OutputKind.OUT)]

    def test_layout_mismatch_falls_back_to_output(self, project_dir):
        (project_dir / "out").mkdir()

        _, _, candidates = resolve(project_dir / "App.csproj", project_dir / "out")

        assert candidates == [(str(project_dir / "out"), OutputKind.OUT)]

    def test_configuration_mismatch_falls_back_to_output(self, project_dir):
        """A framework leaf under a folder that is not a known configuration is taken as is."""
        _, _, candidates = resolve(
            project_dir / "App.csproj", project_dir / "bin" / "Debug" / "net8.0", configuration="Release"
        )

        assert candidates == [(str(project_dir / "bin" / "Debug" / "net8.0"), OutputKind.OUT)]

    def test_validation_disabled(self, project_dir):
        _, _, candidates = resolve(
            project_dir / "App.csproj",
            project_dir / "bin" / "Debug" / "net8.0",
            options=CleanOptions(validate_structure=False),
        )

        assert candidates == [(str(project_dir / "bin" / "Debug" / "net8.0"), OutputKind.OUT)]

    def test_missing_configuration_directory(self, project_dir):
        _, _, candidates = resolve(
            project_dir / "App.csproj", project_dir / "bin" / "Release" / "net8.0", configuration="Release"
        )

        assert candidates == []

    def test_case_insensitive_configuration(self, project_dir):
        _, _, candidates = resolve(
            project_dir / "App.csproj", project_dir / "bin" / "Debug" / "net8.0", configuration="DEBUG"
        )

        assert len(candidates) == 2

    def test_extra_framework_names(self, project_dir):
        (project_dir / "bin" / "Debug" / "uap10.0").mkdir()
        aggregator = BuildUnitAggregator()
        aggregator.record(
            Observation(
                build_unit_path=str(project_dir / "App.csproj"),
                output_path=str(project_dir / "bin" / "Debug" / "net8.0"),
                configuration_name="Debug",
            )
        )
        resolver = CandidateResolver(aggregator, CleanOptions(extra_tfms=["uap10.0"]))

        candidates = resolver.resolve(aggregator.get(str(project_dir / "App.csproj")))

        assert str(project_dir / "bin" / "Debug" / "uap10.0") in [path for path, _ in candidates]


class TestDispatch:
    """Test strategy dispatch per project family and output kind."""

    def test_intermediate_is_direct(self, project_dir):
        (project_dir / "obj").mkdir()

        _, _, candidates = resolve(
            project_dir / "App.csproj", project_dir / "obj", kind=OutputKind.BASE_INTERMEDIATE
        )

        assert candidates == [(str(project_dir / "obj"), OutputKind.BASE_INTERMEDIATE)]

    def test_missing_intermediate_yields_nothing(self, project_dir):
        _, _, candidates = resolve(
            project_dir / "App.csproj", project_dir / "obj", kind=OutputKind.BASE_INTERMEDIATE
        )

        assert candidates == []

    def test_native_output_is_direct(self, tmp_path):
        out = tmp_path / "Native" / "x64" / "Debug"
        out.mkdir(parents=True)

        _, _, candidates = resolve(tmp_path / "Native" / "Native.vcxproj", out)

        assert candidates == [(str(out), OutputKind.OUT)]

    def test_managed_base_output_is_undefined(self, project_dir):
        """Managed BaseOutputPath has no cleanup policy yet."""
        with pytest.raises(PolicyNotImplementedError):
            resolve(project_dir / "App.csproj", project_dir / "bin", kind=OutputKind.BASE_OUTPUT)

    def test_base_output_failure_marks_processed(self, project_dir):
        aggregator = BuildUnitAggregator()
        aggregator.record(
            Observation(
                build_unit_path=str(project_dir / "App.csproj"),
                output_path=str(project_dir / "bin"),
                output_kind=OutputKind.BASE_OUTPUT,
            )
        )
        resolver = CandidateResolver(aggregator)

        with pytest.raises(NotImplementedError):
            resolver.resolve(aggregator.get(str(project_dir / "App.csproj")))

        assert aggregator.is_processed(str(project_dir / "App.csproj"))

    def test_foreign_record_rejected_before_resolution(self, project_dir):
        """A record from another aggregator fails fast instead of masking the policy error."""
        _, other, _ = resolve(project_dir / "App.csproj", project_dir / "bin" / "Debug" / "net8.0")
        foreign = other.get(str(project_dir / "App.csproj"))
        resolver = CandidateResolver(BuildUnitAggregator())

        with pytest.raises(KeyError, match="not a record of this aggregator"):
            resolver.resolve(foreign)

    def test_unknown_project_type(self, tmp_path):
        out = tmp_path / "bin"
        out.mkdir()

        resolver, aggregator, candidates = resolve(tmp_path / "Site.wapproj", out)

        assert candidates == []
        assert aggregator.is_processed(str(tmp_path / "Site.wapproj"))
        assert resolver.strategy_for(aggregator.get(str(tmp_path / "Site.wapproj")).project_kind, OutputKind.OUT) is None

    def test_second_resolve_is_noop(self, project_dir):
        resolver, aggregator, first = resolve(project_dir / "App.csproj", project_dir / "bin" / "Debug" / "net8.0")

        assert first
        assert resolver.resolve(aggregator.get(str(project_dir / "App.csproj"))) == []

    def test_duplicate_outputs_resolve_once(self, project_dir):
        """Debug builds of two frameworks share one configuration folder."""
        aggregator = BuildUnitAggregator()
        for tfm in ("net6.0", "net8.0"):
            aggregator.record(
                Observation(
                    build_unit_path=str(project_dir / "App.csproj"),
                    output_path=str(project_dir / "bin" / "Debug" / tfm),
                    configuration_name="Debug",
                    target_framework_ids="net6.0;net8.0",
                )
            )

        candidates = CandidateResolver(aggregator).resolve(aggregator.get(str(project_dir / "App.csproj")))

        assert len(candidates) == 2


class TestTfmCatalog:
    """Test TfmCatalog."""

    def test_known_names(self):
        catalog = TfmCatalog()
        assert catalog.is_tfm_name("net8.0")
        assert "NETSTANDARD2.0" in catalog
        assert not catalog.is_tfm_name("Debug")
        assert not catalog.is_tfm_name("")

    def test_extra_names(self):
        assert TfmCatalog(["net8.0-windows", " "]).is_tfm_name("net8.0-windows")
        assert len(TfmCatalog(["net8.0"])) == len(TfmCatalog())
