"""Parsing of Elastic Agent and OTel collector configuration files."""