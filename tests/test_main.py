import main


def test_list_ports_includes_simulator(capsys) -> None:
    assert main.main(["--list-ports"]) == 0
    assert "SIM" in capsys.readouterr().out.split()


def test_port_is_required(capsys) -> None:
    assert main.main([]) == 2
    assert "port is required" in capsys.readouterr().err


def test_simulated_run(tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    assert main.main(["--port", "SIM", "--measure", "--attenuation", "1.5", "--duration", "0"]) == 0
    assert (tmp_path / ".rf_power_monitor" / "logs" / "rf_power_monitor.log").exists()


def test_bad_table_file(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    assert main.main(["--port", "SIM", "--table", str(tmp_path / "missing.csv")]) == 1


def test_parser_range() -> None:
    args = main.build_parser().parse_args(["--port", "SIM", "--range", "1000", "2000"])
    assert args.range == [1000.0, 2000.0]


def test_package_records_reach_package_logger(tmp_path, monkeypatch, caplog) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    assert main.main(["--port", "SIM", "--duration", "0"]) == 0
    names = {record.name for record in caplog.records}
    assert "sensor_communication.communicator.sensor_communicator" in names
