import gtastat

# Below is an example using the GtaStat class.
# If the server is offline, the informational fields hold sentinel values ("Server Offline", 0, "N/A").
status = gtastat.GtaStat().query('127.0.0.1', 7777, gtastat.QueryProtocols.SAMP)
print('SA-MP server status of %s on port %d:' % (status.address, status.port))
if status.online:
  print('Server is online running version %s with %s out of %s players.' % (status.version, status.players, status.max_players))
  print('Hostname: %s' % status.hostname)
  print('Gamemode: %s' % status.gamemode)
  print('Latency: %sms' % status.ping)
else:
  print('Server is offline! (%s)' % status.connection_status)

# RAGE:MP servers publish their status on the game port plus one.
status = gtastat.query('127.0.0.1', 22005, 'ragemp')
print('RAGE:MP server %s:%d online: %s' % (status.address, status.port, status.online))
