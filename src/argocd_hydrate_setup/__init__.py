# ABOUTME: Setup ArgoCD Hydrate package initialization
# ABOUTME: Exposes version information for the action and its HTTP user agent

"""
Setup ArgoCD Hydrate - install the argocd-hydrate CLI in CI pipelines.

=============================================================================
WHAT IS THIS PACKAGE?
=============================================================================

A GitHub Action, written in Python, that makes the `argocd-hydrate` binary
available to later steps of a workflow:

    - uses: kazysgurskas/setup-argocd-hydrate@v1
      with:
        version: latest
        token: ${{ github.token }}
    - run: argocd-hydrate --help

=============================================================================
WHAT IS ARGOCD HYDRATE?
=============================================================================

ArgoCD can render ("hydrate") Kubernetes manifests from Helm charts and
Kustomize overlays before syncing them. argocd-hydrate runs that rendering
step in CI, so the fully rendered manifests can be reviewed and committed.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

argocd_hydrate_setup/
├── __init__.py          <- You are here
├── action.py            <- Pipeline orchestration and `main()` entry point
├── config.py            <- Action inputs and runner environment (pydantic-settings)
└── utils/
    ├── __init__.py      <- Utils subpackage marker
    ├── cache.py         <- Version-keyed tool cache
    ├── download.py      <- Release archive download and extraction
    ├── errors.py        <- Exception hierarchy
    ├── logging.py       <- Structured logging with run IDs
    ├── platform.py      <- Target OS/architecture resolution
    ├── releases.py      <- GitHub releases client and version resolution
    └── runner.py        <- GitHub Actions file and workflow commands

The pipeline runs strictly in that order:

    platform -> releases -> download -> cache -> runner
"""

# Semantic versioning; also sent in the User-Agent header of every request.
__version__ = "0.1.0"

__all__ = ["__version__"]
