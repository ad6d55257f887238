"""Pipeline graph model and health assessment."""