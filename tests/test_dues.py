from services.dues import due_filter_options, filter_due_details, outstanding_total

ROWS = [
    {
        "studentId": 1, "admissionNo": "ADM001", "studentName": "Asha", "class": "5",
        "route": "North", "vehicle": "BUS-1",
        "slabs": [
            {"slab": "Q1", "status": "Paid", "finalPayable": 0},
            {"slab": "Q2", "status": "Due", "finalPayable": 500},
        ],
    },
    {
        "studentId": 2, "admissionNo": "ADM002", "studentName": "Ravi", "class": "6",
        "route": "South", "vehicle": "BUS-2",
        "slabs": [{"slab": "Q1", "status": "Due", "finalPayable": 450}],
    },
    {
        "studentId": 3, "admissionNo": "ADM013", "studentName": "Meena", "class": "5",
        "route": "North", "vehicle": None,
        "slabs": [],
    },
]


def test_filter_options_are_distinct_in_first_seen_order():
    options = due_filter_options(ROWS)

    assert options["classes"] == ["5", "6"]
    assert options["routes"] == ["North", "South"]
    assert options["vehicles"] == ["BUS-1", "BUS-2"]
    assert options["slabs"] == ["Q1", "Q2"]


def test_no_filters_keeps_rows_with_slabs():
    assert [r["studentId"] for r in filter_due_details(ROWS)] == [1, 2]


def test_slab_filter_narrows_each_row():
    result = filter_due_details(ROWS, slab="Q2")

    assert [r["studentId"] for r in result] == [1]
    assert [s["slab"] for s in result[0]["slabs"]] == ["Q2"]
    # Source rows untouched
    assert len(ROWS[0]["slabs"]) == 2


def test_combined_filters():
    assert filter_due_details(ROWS, class_name="5", route="South") == []
    assert [r["studentId"] for r in filter_due_details(ROWS, route="South", vehicle="BUS-2")] == [2]


def test_admission_number_is_a_substring_match():
    assert [r["studentId"] for r in filter_due_details(ROWS, admission_no="ADM00")] == [1, 2]


def test_outstanding_total_counts_due_slabs_only():
    assert outstanding_total(ROWS) == 950
