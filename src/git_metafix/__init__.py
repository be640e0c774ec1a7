"""
git-metafix - rewrite commit author/committer identity across git history.

Collects the old and new identity, validates the repository, inspects what a
rewrite would touch, runs git filter-repo (or git filter-branch when
filter-repo is not installed) and then restores remotes and reports the
force-push that the rewritten history requires.
"""

__version__ = "1.2.0"
