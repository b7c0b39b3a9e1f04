from conftest import make_job

from job_matcher.models.requests import CandidateProfile, MatchPreferences
from job_matcher.services.pipeline.prefilter import prefilter, rank_for_matching, rank_for_search


def _candidate(skills=("Python", "AWS")) -> CandidateProfile:
    return CandidateProfile(candidate_id="c1", skills=list(skills), experience="3 years")


class TestPrefilter:
    def test_inactive_jobs_dropped(self):
        jobs = [make_job("a"), make_job("b", is_active=False)]
        assert [j.id for j in prefilter(jobs, _candidate())] == ["a"]

    def test_job_type_constraint(self):
        prefs = MatchPreferences(preferred_job_types=["Contract"])
        jobs = [make_job("a", type="Full-time"), make_job("b", type="Contract")]
        assert [j.id for j in prefilter(jobs, _candidate(), prefs)] == ["b"]

    def test_unknown_job_type_passes_type_preference(self):
        prefs = MatchPreferences(preferred_job_types=["Contract"])
        jobs = [make_job("blank", type=""), make_job("spaces", type="   "), make_job("ft", type="Full-time")]
        assert [j.id for j in prefilter(jobs, _candidate(), prefs)] == ["blank", "spaces"]

    def test_unknown_job_location_passes_location_preference(self):
        prefs = MatchPreferences(preferred_location="Berlin")
        jobs = [make_job("blank", location=""), make_job("munich", location="Munich")]
        assert [j.id for j in prefilter(jobs, _candidate(), prefs)] == ["blank"]

    def test_location_constraint_spares_remote(self):
        prefs = MatchPreferences(preferred_location="Berlin")
        jobs = [
            make_job("munich", location="Munich"),
            make_job("berlin", location="Berlin, Germany"),
            make_job("remote", location="Remote (EU)"),
        ]
        assert {j.id for j in prefilter(jobs, _candidate(), prefs)} == {"berlin", "remote"}

    def test_zero_overlap_dropped_unless_entry_level(self):
        jobs = [
            make_job("ui", "Frontend Engineer", requirements=["React"]),
            make_job("grad", "Graduate Frontend Engineer", requirements=["React"]),
            make_job("py", "Backend Engineer", requirements=["Python"]),
        ]
        assert {j.id for j in prefilter(jobs, _candidate())} == {"grad", "py"}

    def test_candidate_without_skills_skips_overlap_filter(self):
        jobs = [make_job("ui", requirements=["React"]), make_job("go", requirements=["Go"])]
        assert len(prefilter(jobs, _candidate(skills=()))) == 2

    def test_priority_order_is_stable(self):
        jobs = [
            make_job("onsite-1", location="Berlin", requirements=["Python"]),
            make_job("remote-2", location="Remote", requirements=["Python", "AWS"]),
            make_job("onsite-2", location="Berlin", requirements=["Python", "AWS"]),
            make_job("onsite-1b", location="Berlin", requirements=["Python"]),
        ]
        # remote-2: 10 + 10, onsite-2: 10, onsite-1 / onsite-1b: 5
        assert [j.id for j in prefilter(jobs, _candidate())] == ["remote-2", "onsite-2", "onsite-1", "onsite-1b"]

    def test_soundness(self):
        prefs = MatchPreferences(preferred_location="Berlin", preferred_job_types=["Full-time"])
        jobs = [
            make_job("a", location="Munich"),
            make_job("b", location="Berlin", type="Contract"),
            make_job("c", location="Berlin", requirements=["Cobol"]),
            make_job("d", location="Berlin"),
            make_job("e", is_active=False),
        ]
        kept = prefilter(jobs, _candidate(), prefs)
        assert {j.id for j in kept} == {"d"}
        assert all(j.is_active for j in kept)


def test_caps():
    jobs = [make_job(f"j{i}") for i in range(80)]
    assert len(rank_for_matching(jobs, _candidate())) == 50
    assert len(rank_for_search(jobs, _candidate())) == 30
    assert len(rank_for_matching(jobs, _candidate(), cap=5)) == 5
